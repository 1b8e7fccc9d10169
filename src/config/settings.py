# src/config/settings.py — v2
"""Typed configuration loaded from the runner environment via pydantic-settings.

Two sources, both read once per invocation:
- Settings: action inputs, exposed by the runner as INPUT_<NAME> variables
  (hyphenated input names are kept as-is, e.g. INPUT_RESTORE-KEYS).
- RunnerEnvironment: variables the runner sets for every step
  (GITHUB_WORKSPACE, RUNNER_TEMP, GITHUB_OUTPUT, ...).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a required input is missing or inputs are inconsistent."""


def _split_lines(value: str) -> list[str]:
    return [line.strip() for line in value.splitlines() if line.strip()]


class Settings(BaseSettings):
    """Action inputs."""

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        env_file=None,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # === Cache identity ===
    bucket: str = ""
    key: str = ""
    restore_keys: str = Field(default="", validation_alias="input_restore-keys")
    path: str = ""

    # === Tiers ===
    local: str = ""
    use_fallback: bool = Field(default=True, validation_alias="input_use-fallback")
    error_on_remote_exception: bool = Field(
        default=False, validation_alias="input_error-on-s3-exception"
    )

    # === S3 connection ===
    endpoint: str = "s3.amazonaws.com"
    port: int | None = None
    insecure: bool = False
    region: str = ""
    access_key: str = Field(default="", validation_alias="input_accesskey")
    secret_key: str = Field(default="", validation_alias="input_secretkey")
    session_token: str = Field(default="", validation_alias="input_sessiontoken")
    timeout_seconds: float = Field(
        default=60.0, validation_alias="input_timeout-seconds"
    )
    max_attempts: int = Field(default=3, validation_alias="input_max-attempts")

    # === Archive ===
    compression: Literal["auto", "zstd", "gzip", "none"] = "auto"

    # === Logging ===
    log_format: Literal["actions", "json", "text"] = Field(
        default="actions", validation_alias="input_log-format"
    )

    # --- Validators ---

    @field_validator("use_fallback", "error_on_remote_exception", "insecure", mode="before")
    @classmethod
    def parse_action_bool(cls, v: object) -> object:  # noqa: N805
        """Inputs arrive as strings; only 'true' (any case) enables a flag."""
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v

    @field_validator("port", mode="before")
    @classmethod
    def empty_port(cls, v: object) -> object:  # noqa: N805
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max_attempts must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_required_inputs(self) -> Settings:
        """bucket and key are required; nothing runs without them."""
        missing = [name for name in ("bucket", "key") if not getattr(self, name).strip()]
        if missing:
            raise ConfigurationError(
                "Input required and not supplied: " + ", ".join(missing)
            )
        return self

    # --- Helpers ---

    @property
    def restore_keys_list(self) -> list[str]:
        """Parse newline-separated restore keys, order preserved."""
        return _split_lines(self.restore_keys)

    @property
    def paths_list(self) -> list[str]:
        """Parse newline-separated path globs."""
        return _split_lines(self.path)

    @property
    def local_root(self) -> str | None:
        return self.local.strip() or None

    @property
    def credentials(self) -> dict[str, str]:
        """Credential-bearing inputs, as handed to the save phase."""
        return {
            "access_key": self.access_key,
            "secret_key": self.secret_key,
            "session_token": self.session_token,
        }


class RunnerEnvironment(BaseSettings):
    """Variables provided by the CI runner for every step."""

    model_config = SettingsConfigDict(env_file=None, extra="ignore", frozen=True)

    github_server_url: str = "https://github.com"
    github_workspace: Path | None = None
    runner_temp: Path | None = None
    runner_debug: str = ""
    github_output: Path | None = None
    github_state: Path | None = None
    actions_results_url: str = ""
    actions_runtime_token: str = ""

    @field_validator(
        "github_workspace", "runner_temp", "github_output", "github_state", mode="before"
    )
    @classmethod
    def empty_path(cls, v: object) -> object:  # noqa: N805
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def debug_enabled(self) -> bool:
        return self.runner_debug.strip() == "1"

    @property
    def server_hostname(self) -> str:
        return (urlparse(self.github_server_url).hostname or "").lower()

    @property
    def workspace(self) -> Path:
        """Directory archives are extracted into."""
        return self.github_workspace or Path.cwd()


def load_settings(**overrides: object) -> Settings:
    """Load action inputs from the environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If a required input is missing.
    """
    return Settings(**overrides)  # type: ignore[arg-type]


def load_runner_environment(**overrides: object) -> RunnerEnvironment:
    """Load runner-provided variables with optional overrides."""
    return RunnerEnvironment(**overrides)  # type: ignore[arg-type]
