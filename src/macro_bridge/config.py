"""Configuration for the expression bridge.

Configuration source priority:
1. Explicit BridgeConfig instance passed to MacroExpressionResolver
2. YAML file loaded with BridgeConfig.from_file()
3. Environment variables read by BridgeConfig.from_env()
4. Built-in defaults

Example config file:
```yaml
sandboxed: true
strict_undefined: true
resolver_variable: resolver
cache_expressions: true
max_cache_size: 1024
```

Environment variables:
    MACRO_BRIDGE_SANDBOXED: "true"/"false"
    MACRO_BRIDGE_STRICT_UNDEFINED: "true"/"false"
    MACRO_BRIDGE_RESOLVER_VARIABLE: variable name for published resolvers
    MACRO_BRIDGE_CACHE_EXPRESSIONS: "true"/"false"
    MACRO_BRIDGE_MAX_CACHE_SIZE: 1-1000000 (clamped automatically)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "MACRO_BRIDGE_"
MAX_CACHE_SIZE_LIMIT = 1_000_000


class BridgeConfig(BaseModel):
    """Settings shared by the expression parsers and the resolver registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sandboxed: bool = Field(
        default=True,
        description="Evaluate template expressions in a sandboxed Jinja2 environment",
    )
    strict_undefined: bool = Field(
        default=True,
        description="Fail template evaluation on undefined names instead of yielding None",
    )
    resolver_variable: str = Field(
        default="resolver",
        min_length=1,
        description="Evaluation context variable under which hosts publish a resolver",
    )
    cache_expressions: bool = Field(
        default=True,
        description="Reuse parsed expressions for identical configuration strings",
    )
    max_cache_size: int = Field(
        default=1024,
        ge=1,
        le=MAX_CACHE_SIZE_LIMIT,
        description="Maximum number of parsed expressions kept in the cache",
    )

    @field_validator("resolver_variable")
    @classmethod
    def validate_resolver_variable(cls, v: str) -> str:
        """Ensure the variable name can be referenced from template expressions."""
        if not v.isidentifier():
            raise ValueError(f"resolver_variable must be a valid identifier, got '{v}'")
        return v

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BridgeConfig:
        """
        Build configuration from MACRO_BRIDGE_* environment variables.

        Invalid values are logged and replaced by defaults.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            BridgeConfig instance
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name in ("sandboxed", "strict_undefined", "cache_expressions"):
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            parsed = _parse_bool(raw)
            if parsed is None:
                logger.warning(f"Ignoring {ENV_PREFIX}{name.upper()}={raw!r}: not a boolean")
            else:
                values[name] = parsed

        resolver_variable = env.get(f"{ENV_PREFIX}RESOLVER_VARIABLE")
        if resolver_variable:
            if resolver_variable.isidentifier():
                values["resolver_variable"] = resolver_variable
            else:
                logger.warning(
                    f"Ignoring {ENV_PREFIX}RESOLVER_VARIABLE={resolver_variable!r}: "
                    "not a valid identifier"
                )

        raw_size = env.get(f"{ENV_PREFIX}MAX_CACHE_SIZE")
        if raw_size is not None:
            try:
                values["max_cache_size"] = max(1, min(MAX_CACHE_SIZE_LIMIT, int(raw_size)))
            except ValueError:
                logger.warning(f"Ignoring {ENV_PREFIX}MAX_CACHE_SIZE={raw_size!r}: not an integer")

        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path) -> BridgeConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML file

        Returns:
            BridgeConfig instance

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid YAML or fails validation
        """
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Bridge config file not found: {config_path}")

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Bridge config must be a mapping, got {type(data).__name__}")

        try:
            config = cls(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid bridge config in {config_path}: {e}") from e

        logger.debug(f"Loaded bridge config from {config_path}")
        return config


def _parse_bool(raw: str) -> bool | None:
    lower = raw.strip().lower()
    if lower in ("true", "1", "yes", "on"):
        return True
    if lower in ("false", "0", "no", "off"):
        return False
    return None


__all__ = ["BridgeConfig"]
