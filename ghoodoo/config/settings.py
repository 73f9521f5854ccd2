"""
Configuration system using Pydantic for type-safe settings management.

Settings are read from the environment variables of a webhook deployment
(GITHUB_WEBHOOK_SECRET, ODOO_URL, ODOO_STAGE_DONE, ...) or from a YAML
file with the same keys in lower case.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Annotated, Any

import structlog
import yaml
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ghoodoo.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<default>[^}]*))?\}")


def expand_env_references(text: str) -> str:
    """Replace ${VAR} and ${VAR:-default} outside YAML comment lines.

    Raises:
        KeyError: With the variable name, if it is unset and has no default
    """

    def substitute(match: re.Match[str]) -> str:
        value = os.environ.get(match["name"], match["default"])
        if value is None:
            raise KeyError(match["name"])
        return value

    return "\n".join(
        line if line.lstrip().startswith("#") else ENV_REFERENCE.sub(substitute, line) for line in text.split("\n")
    )


def coerce_stage_ref(value: Any) -> Any:
    """Turn numeric strings into stage ids; other strings stay stage names."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        return stripped
    return value


StageRef = Annotated[int | str, BeforeValidator(coerce_stage_ref)]
"""A stage given either by Odoo id or by name (resolved remotely)."""


def reject_blank_stage(value: int | str) -> int | str:
    if value == "":
        raise ValueError("stage must be an id or a non-empty name")
    return value


RequiredStageRef = Annotated[StageRef, AfterValidator(reject_blank_stage)]

UserMapping = dict[str, str]
"""GitHub commit email -> Odoo user email or login."""


class StageConfig(BaseModel):
    """Target stages for task transitions.

    Only ``done`` is required. Leaving ``in_progress`` or ``canceled`` unset
    disables the transition on PR open or unmerged close.
    """

    model_config = ConfigDict(frozen=True)

    done: RequiredStageRef = Field(..., description="Stage for closing references once merged")
    in_progress: StageRef | None = Field(default=None, description="Stage when a PR is opened or reopened")
    canceled: StageRef | None = Field(default=None, description="Stage when a PR is closed without merge")


class OdooConfig(BaseModel):
    """Connection and behaviour settings for the Odoo JSON-RPC client."""

    url: str = Field(..., description="Odoo base URL, e.g. https://mycompany.odoo.com")
    database: str = Field(..., description="Odoo database name")
    api_key: str = Field(..., description="API key used as password and bearer token")
    username: str | None = Field(default=None, description="Login to authenticate with; enables uid lookup")
    uid: int = Field(default=2, ge=1, description="User id used when no username is configured")
    stages: StageConfig
    user_mapping: UserMapping = Field(default_factory=dict)
    default_user_id: int | None = Field(default=None, description="Fallback author for chatter messages")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class GhoodooSettings(BaseSettings):
    """Main settings for the webhook bridge.

    Field names map onto the deployment's environment variables
    case-insensitively (``odoo_stage_done`` <- ``ODOO_STAGE_DONE``).
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    github_webhook_secret: str = Field(..., description="Shared secret for X-Hub-Signature-256")
    github_token: str | None = Field(default=None, description="Token for posting PR comments")

    odoo_url: str
    odoo_database: str
    odoo_username: str | None = None
    odoo_api_key: str
    odoo_uid: int = 2
    odoo_stage_done: RequiredStageRef
    odoo_stage_in_progress: StageRef | None = None
    odoo_stage_canceled: StageRef | None = None
    odoo_user_mapping: Annotated[str | UserMapping | None, NoDecode] = Field(
        default=None, description='JSON object such as {"dev@github.com": "dev@odoo.com"}'
    )
    odoo_default_user_id: int | None = None

    log_level: str = Field(default="INFO", description="Minimum structlog level")

    @field_validator(
        "github_token",
        "odoo_username",
        "odoo_stage_in_progress",
        "odoo_stage_canceled",
        "odoo_user_mapping",
        "odoo_default_user_id",
        mode="before",
    )
    @classmethod
    def empty_string_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def user_mapping(self) -> UserMapping:
        """Parsed user mapping; invalid JSON is logged and ignored."""
        raw = self.odoo_user_mapping
        if raw is None:
            return {}
        if isinstance(raw, dict):
            return dict(raw)
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("invalid_user_mapping", error=str(e))
            return {}
        if not isinstance(parsed, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in parsed.items()
        ):
            log.warning("invalid_user_mapping", error="expected a JSON object of strings")
            return {}
        return parsed

    @property
    def stages(self) -> StageConfig:
        return StageConfig(
            done=self.odoo_stage_done,
            in_progress=self.odoo_stage_in_progress,
            canceled=self.odoo_stage_canceled,
        )

    def odoo_config(self) -> OdooConfig:
        """Build the Odoo client configuration."""
        return OdooConfig(
            url=self.odoo_url,
            database=self.odoo_database,
            api_key=self.odoo_api_key,
            username=self.odoo_username,
            uid=self.odoo_uid,
            stages=self.stages,
            user_mapping=self.user_mapping,
            default_user_id=self.odoo_default_user_id,
        )

    @classmethod
    def from_env(cls) -> GhoodooSettings:
        """Load settings from the environment.

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        try:
            return cls()
        except Exception as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str) -> GhoodooSettings:
        """Load settings from a YAML file using the same keys in lower case.

        ``${VAR}`` and ``${VAR:-default}`` are expanded from the environment
        before the YAML is parsed.

        Raises:
            ConfigurationError: If the file is missing, unreadable, not a
                mapping, or fails validation
        """
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            raw = expand_env_references(path.read_text())
            data = yaml.safe_load(raw)
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e
        except KeyError as e:
            raise ConfigurationError(f"Environment variable {e.args[0]} referenced in {config_path} is not set") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a YAML object of settings")

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigurationError(f"Invalid settings in {config_path}: {e}") from e
