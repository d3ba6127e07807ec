# src/alchemist/dataloader/config_loader.py
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alchemist.errors import ConfigError
from alchemist.rules.presets import PROFILE_NAMES
from alchemist.schemas.models import EngineConfig


class ConfigLoader:
    """
    @brief
    Loader responsible for reading and validating engine configuration.

    @details
    Reads YAML from disk, parses it into a mapping, validates structure
    against the Pydantic `EngineConfig` schema, and raises structured
    `ConfigError` instances for all failure modes. Expression rules listed
    in the file are schema-checked here and compiled later by the store.
    """

    def load(self, path: Path) -> EngineConfig:
        """
        @brief
        Load and validate configuration from YAML file.

        @params
            path : Path
                Filesystem path to configuration file (.yaml or .yml).

        @returns
            Validated EngineConfig instance.

        @raises
            ConfigError
                Raised if file is missing, malformed, or fails schema validation.
        """
        # (1) Read and parse YAML configuration file
        data = self._read_yaml(path)

        # (2) Validate mapping against Pydantic schema
        return self._validate(data)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        """
        @brief
        Read YAML file into Python mapping with strict checks.

        @details
        Validates file existence, extension, readability, and syntax.
        Ensures non-empty content and top-level mapping structure.

        @raises
            ConfigError
                Raised on invalid path type, missing file, wrong extension,
                I/O error, syntax error, empty file, or non-mapping structure.
        """
        # (1) Validate path type and existence
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to engine.yaml.",
            )

        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure engine.yaml exists and the path is correct.",
            )

        # (2) Enforce correct file extension
        if path.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use .yaml or .yml extension for configuration files.",
            )

        # (3) Read and parse YAML content
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax/indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        # (4) Validate structural integrity of parsed data
        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source="ConfigLoader._read_yaml",
                suggested_action="Populate engine.yaml with engine settings or rules.",
            )

        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure top-level YAML structure uses key: value mappings.",
            )

        return dict(data)

    def _validate(self, data: dict[str, Any]) -> EngineConfig:
        """
        @brief
        Validate parsed configuration mapping via Pydantic schema.

        @details
        Wraps `ValidationError` in a structured `ConfigError`, and rejects
        profile names that no preset defines.

        @raises
            ConfigError
                Raised on schema mismatch or unknown profile.
        """
        try:
            cfg = EngineConfig(**data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check field names, types, and bounds in engine.yaml. "
                    "Remove unknown keys (extra fields are forbidden)."
                ),
            ) from e

        if cfg.profile is not None and cfg.profile not in PROFILE_NAMES:
            raise ConfigError(
                message=f"Unknown rule profile: {cfg.profile!r}",
                source="ConfigLoader._validate",
                suggested_action=f"Use one of: {', '.join(PROFILE_NAMES)}",
            )
        return cfg


__all__ = ["ConfigLoader"]
