"""Contains utilities for rendering Jinja2 templates."""

from pathlib import Path
from typing import Any

import jinja2
import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TEMPLATES_DIRECTORY = Path(__file__).parent.parent / "templates"


def construct_jinja2_environment() -> jinja2.Environment:
    """Construct a Jinja2 environment that loads the bundled templates."""
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(TEMPLATES_DIRECTORY),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )


def construct_jinja2_template_from_string(template_string: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a string."""
    if environment is None:
        environment = construct_jinja2_environment()
    return environment.from_string(template_string)


def get_bundled_template(name: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Load one of the templates shipped with the package."""
    if environment is None:
        environment = construct_jinja2_environment()
    try:
        return environment.get_template(name)
    except jinja2.TemplateNotFound:
        logger.error("Jinja2 template not found", template_name=name, templates_directory=str(TEMPLATES_DIRECTORY))
        raise


def render_template(template: jinja2.Template, **context: Any) -> str:
    """Render a Jinja2 template with the given context."""
    try:
        return template.render(**context)
    except jinja2.UndefinedError as exc:
        logger.error("Failed to render template", template_name=template.name, error=str(exc))
        raise
