#!/usr/bin/env python3
"""
Configuration loader with multi-layer merging.

Layers (low to high priority):
1. Built-in defaults (presets/defaults.json)
2. User file (--config)
3. User CLI overrides (--region, --timeout)

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import json
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from opsdeploy.core.errors import ConfigurationError, create_error_context


@dataclass(frozen=True)
class DeployerSettings:
    """Resolved settings for one run."""

    region: Optional[str] = None
    poll_interval: float = 10
    drain_fallback_seconds: float = 20
    health_padding_checks: int = 2
    deploy_timeout: int = 600
    rolling_timeout: int = 600
    update_cookbooks_timeout: int = 150
    comment_template: str = "Git Sha: {revision}"

    def comment(self, revision: str) -> str:
        return self.comment_template.format(revision=revision)


class ConfigLoader:
    """Configuration loader with preset support."""

    PRESET_DIR = Path(__file__).parent / "presets"

    @classmethod
    def load_preset(cls, preset_path: str) -> Dict[str, Any]:
        """
        Load a preset JSON file.

        Args:
            preset_path: Relative path to preset file from PRESET_DIR

        Returns:
            Dict containing preset configuration, or empty dict if not found
        """
        full_path = cls.PRESET_DIR / preset_path
        if not full_path.exists():
            return {}
        return cls._read_json(full_path)

    @classmethod
    def load_file(cls, config_file: str) -> Dict[str, Any]:
        """
        Load a user configuration file.

        Raises:
            ConfigurationError: If the file is missing or not a JSON object
        """
        path = Path(config_file)
        if not path.exists():
            raise ConfigurationError(
                f"Config file not found: {config_file}",
                context=create_error_context("load_config", additional_info={"file": config_file}),
            )
        return cls._read_json(path)

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigurationError(f"Could not load config {path}: {e}", cause=e) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {path} must contain a JSON object")
        return data

    @classmethod
    def deep_merge(cls, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries. Override wins conflicts.
        Nested dicts are merged, lists/primitives are replaced.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls.deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    @classmethod
    def load(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Load the merged configuration dictionary.

        Args:
            config_file: Optional user JSON file
            overrides: CLI-level overrides; None values are ignored

        Returns:
            Merged configuration
        """
        config = cls.load_preset("defaults.json")
        if config_file:
            config = cls.deep_merge(config, cls.load_file(config_file))
        if overrides:
            config = cls.deep_merge(
                config, {k: v for k, v in overrides.items() if v is not None}
            )
        return config

    @classmethod
    def load_settings(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> DeployerSettings:
        """
        Load and validate settings.

        Raises:
            ConfigurationError: If a value has the wrong type or range
        """
        config = cls.load(config_file, overrides)
        timeouts = config.get("timeouts", {})
        try:
            settings = DeployerSettings(
                region=config.get("region"),
                poll_interval=float(config.get("poll_interval", 10)),
                drain_fallback_seconds=float(config.get("drain_fallback_seconds", 20)),
                health_padding_checks=int(config.get("health_padding_checks", 2)),
                deploy_timeout=int(timeouts.get("deploy", 600)),
                rolling_timeout=int(timeouts.get("rolling", 600)),
                update_cookbooks_timeout=int(timeouts.get("update_cookbooks", 150)),
                comment_template=str(config.get("comment_template", "Git Sha: {revision}")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}", cause=e) from e

        cls.validate(settings)
        return settings

    @staticmethod
    def validate(settings: DeployerSettings) -> None:
        """Raise ConfigurationError for out-of-range settings."""
        if settings.poll_interval <= 0:
            raise ConfigurationError("poll_interval must be positive")
        if settings.drain_fallback_seconds < 0:
            raise ConfigurationError("drain_fallback_seconds must not be negative")
        if settings.health_padding_checks < 0:
            raise ConfigurationError("health_padding_checks must not be negative")
        for name in ("deploy_timeout", "rolling_timeout", "update_cookbooks_timeout"):
            if getattr(settings, name) <= 0:
                raise ConfigurationError(f"timeouts.{name.rsplit('_', 1)[0]} must be positive")
        if "{revision}" not in settings.comment_template:
            raise ConfigurationError("comment_template must contain {revision}")
