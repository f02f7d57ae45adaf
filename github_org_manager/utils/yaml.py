"""Contains utility functions for working with YAML files."""

from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from github_org_manager.schemas.hackathon import HackathonTeamsModel, TeamMembershipsModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Loads a YAML file and returns a dictionary."""
    with open(path, encoding="utf-8") as f:
        data = yaml.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}, got {type(data).__name__}")
    return data


def load_hackathon_teams(path: Path) -> HackathonTeamsModel:
    """Load the list of hackathon team names from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or does not match the schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Teams file not found: {path.absolute()}")
    try:
        model = HackathonTeamsModel.model_validate(load_yaml_file(path))
    except (YAMLError, ValidationError) as exc:
        logger.error("Failed to load teams file", path=str(path), error=str(exc))
        raise ValueError(f"Invalid teams file {path}: {exc}") from exc
    logger.info("Loaded hackathon teams", path=str(path), team_count=len(model.teams))
    return model


def load_team_memberships(path: Path) -> TeamMembershipsModel:
    """Load the team to users mapping from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or does not match the schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Memberships file not found: {path.absolute()}")
    try:
        model = TeamMembershipsModel.model_validate(load_yaml_file(path))
    except (YAMLError, ValidationError) as exc:
        logger.error("Failed to load memberships file", path=str(path), error=str(exc))
        raise ValueError(f"Invalid memberships file {path}: {exc}") from exc
    logger.info("Loaded team memberships", path=str(path), team_count=len(model.memberships))
    return model
