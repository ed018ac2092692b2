"""Runtime settings for the policy gate."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .scoring import is_known_severity

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings read from the environment once per run."""

    model_config = SettingsConfigDict(extra="ignore", frozen=True, env_ignore_empty=True)

    policy_source: Literal["local", "github"] = Field(default="local", description="'local' or 'github'")
    policy_repo: str = Field(default="", description="e.g. 'your-org/dependency-policies'")
    policy_path: str = Field(default=".github/policies", description="Policy directory inside the repo")
    policy_ref: str = Field(default="main", description="Branch, tag or commit of the policy repo")
    min_severity: str = Field(default="critical", description="critical, high, moderate or low")
    local_policy_dir: Path = Field(default=Path(".github/policies"))
    policy_token: str = Field(default="", description="Token for private policy repos")
    policy_ecosystems: str = Field(default="", description="Extra ecosystems to probe in github mode")
    policy_fetch_timeout: float = Field(default=10.0, gt=0)
    policy_fetch_workers: int = Field(default=1, ge=1)

    @field_validator("policy_source", mode="before")
    @classmethod
    def normalize_source(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("min_severity")
    @classmethod
    def warn_unknown_severity(cls, v: str) -> str:
        if not is_known_severity(v):
            logger.warning(f"Unknown minimum severity '{v}', every vulnerability will qualify")
        return v

    @property
    def extra_ecosystems(self) -> List[str]:
        return [e.strip().lower() for e in self.policy_ecosystems.split(",") if e.strip()]


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load a ``key: value`` settings file.

    Lines starting with ``#`` are comments. ``fail_on_severity`` is read as
    ``min_severity`` when the latter is not set. Unknown keys are ignored.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain 'key: value' lines")

    data = {str(k).lower(): v for k, v in data.items()}
    if "min_severity" not in data and "fail_on_severity" in data:
        data["min_severity"] = data["fail_on_severity"]

    values = {}
    for key, value in data.items():
        if key not in Settings.model_fields:
            logger.debug(f"Ignoring unknown config key: {key}")
            continue
        if value is None:
            continue
        values[key] = str(value)
    return values


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """
    Build the run settings.

    Environment variables are read first. Values from an explicitly passed
    settings file replace them, and command-line overrides replace both.
    """
    values: Dict[str, Any] = {}
    if config_path:
        values.update(load_config_file(config_path))
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    settings = Settings(**values)
    logger.debug(f"Settings: source={settings.policy_source}, min_severity={settings.min_severity}")
    return settings
