"""Configuration for SST config pattern detection.

This module provides the Pydantic configuration model controlling which
rules run, which violation codes are reported, severity overrides and
the default minimum fix confidence. Projects may override the defaults
with ``.deploy-kit/patterns.json`` in their root.
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from ..kit_logging import get_logger
from .base import FixConfidence, Severity

logger = get_logger()

CONFIG_DIR = ".deploy-kit"
CONFIG_FILE = "patterns.json"


class RuleConfig(BaseModel):
    """Individual rule configuration."""

    enabled: bool = Field(default=True, description="Enable this rule")
    severity: Literal["error", "warning"] | None = Field(
        default=None, description="Severity override for every violation of this rule"
    )

    class Config:
        extra = "allow"


class PatternDetectionConfig(BaseModel):
    """Configuration for pattern detection and auto-fixing.

    Unknown keys are kept so newer config files load on older versions.
    """

    enabled: bool = Field(default=True, description="Enable pattern detection")
    rules: dict[str, RuleConfig] = Field(
        default_factory=dict, description="Rule-specific configuration"
    )
    disabled_codes: list[str] = Field(
        default_factory=list, description="Violation codes never reported"
    )
    min_fix_confidence: Literal["high", "medium", "low"] = Field(
        default="high", description="Minimum confidence for applying fixes"
    )
    continue_on_error: bool = Field(
        default=True, description="Keep running other rules when one raises"
    )

    class Config:
        extra = "allow"

    @classmethod
    def load(cls, project_root: Path | str | None = None) -> "PatternDetectionConfig":
        """Load configuration for a project.

        Args:
            project_root: Directory containing ``.deploy-kit/patterns.json``

        Returns:
            Parsed configuration, or defaults if the file is missing or invalid
        """
        root = Path(project_root) if project_root is not None else Path.cwd()
        config_path = root / CONFIG_DIR / CONFIG_FILE
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
            config = cls.model_validate(data)
            logger.debug(f"Loaded pattern config from {config_path}")
            return config
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Invalid pattern config {config_path}, using defaults: {e}")
            return cls()

    def is_rule_enabled(self, rule_id: str, default: bool = True) -> bool:
        """Check if a specific rule is enabled.

        Args:
            rule_id: Rule identifier (e.g., 'stage-variable')
            default: Value used when the rule is not configured

        Returns:
            True if the rule should run
        """
        if not self.enabled:
            return False
        if rule_id in self.rules:
            return self.rules[rule_id].enabled
        return default

    def is_code_enabled(self, code: str) -> bool:
        return code not in self.disabled_codes

    def get_severity_override(self, rule_id: str) -> Severity | None:
        rule_config = self.rules.get(rule_id)
        if rule_config is None or rule_config.severity is None:
            return None
        return Severity(rule_config.severity)

    def get_min_fix_confidence(self) -> FixConfidence:
        return FixConfidence(self.min_fix_confidence)


__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "PatternDetectionConfig",
    "RuleConfig",
]
