"""Process-wide configuration.

Settings are read once at startup (process environment over an optional
`.env` file) and passed explicitly to each backend. The model is frozen so
concurrent fetches can share it.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from trifetch.core.errors import ConfigError

DEFAULT_NEAR_RPC_URL = "https://rpc.testnet.near.org"
DEFAULT_NEAR_ACCOUNT_ID = "panasthetik.testnet"
DEFAULT_MONGODB_DATABASE = "sample_mflix"
DEFAULT_MONGODB_COLLECTION = "movies"
DEFAULT_SUMMARY_LIMIT = 10
DEFAULT_FETCH_TIMEOUT_S = 30.0

# NEAR account ids: 2-64 chars, lowercase alphanumerics separated by single - _ or .
_ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")


def validate_account_id(value: str) -> str:
    """Return `value` if it is a well-formed NEAR account id.

    Raises:
        ValueError: If the id is too short, too long, or malformed.
    """
    if not 2 <= len(value) <= 64 or not _ACCOUNT_ID_RE.match(value):
        raise ValueError(f"invalid NEAR account id: {value!r}")
    return value


# Settings field -> environment variable
ENV_VARS: dict[str, str] = {
    "mongodb_uri": "MONGODB_URI",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "near_rpc_url": "NEAR_RPC_URL",
    "near_account_id": "NEAR_ACCOUNT_ID",
    "mongodb_database": "MONGODB_DATABASE",
    "mongodb_collection": "MONGODB_COLLECTION",
    "summary_limit": "SUMMARY_LIMIT",
    "fetch_timeout_s": "FETCH_TIMEOUT_S",
    "log_level": "TRIFETCH_LOG_LEVEL",
}


class Settings(BaseModel):
    """Immutable configuration shared by all backends."""

    model_config = ConfigDict(frozen=True)

    mongodb_uri: str = Field(min_length=1, repr=False)
    supabase_url: str = Field(min_length=1)
    supabase_key: str = Field(min_length=1, repr=False)
    near_rpc_url: str = DEFAULT_NEAR_RPC_URL
    near_account_id: str = DEFAULT_NEAR_ACCOUNT_ID
    mongodb_database: str = DEFAULT_MONGODB_DATABASE
    mongodb_collection: str = DEFAULT_MONGODB_COLLECTION
    summary_limit: int = Field(default=DEFAULT_SUMMARY_LIMIT, ge=1)
    fetch_timeout_s: float = Field(default=DEFAULT_FETCH_TIMEOUT_S, gt=0)
    log_level: str = "INFO"

    @field_validator("near_account_id")
    @classmethod
    def _check_account_id(cls, value: str) -> str:
        return validate_account_id(value)

    @field_validator("supabase_url", "near_rpc_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: Path | str | None = ".env",
    ) -> Settings:
        """Build settings from the environment.

        Values from `environ` (default: os.environ) take precedence over the
        `.env` file, which is optional.

        Args:
            environ: Environment mapping to read.
            env_file: Path to a dotenv file, or None to skip it.

        Returns:
            Validated Settings.

        Raises:
            ConfigError: If a required value is missing or a value is invalid.
        """
        values: dict[str, str | None] = {}
        if env_file is not None and Path(env_file).is_file():
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        raw = {
            field: values[var]
            for field, var in ENV_VARS.items()
            if values.get(var) not in (None, "")
        }

        try:
            return cls(**raw)
        except ValidationError as e:
            problems = []
            for err in e.errors():
                field = str(err["loc"][0]) if err["loc"] else "?"
                problems.append(f"{ENV_VARS.get(field, field)}: {err['msg']}")
            raise ConfigError("Invalid configuration: " + "; ".join(problems)) from e
