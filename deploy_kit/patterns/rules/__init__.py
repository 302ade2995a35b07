"""Pattern rules for SST config validation.

This package contains the 7 built-in rules:
- stage-variable - input.stage misuse, run() parameters, hardcoded stages
- domain-config - stage guards and DNS settings of custom domains
- cors-config - CORS property name typos and array form
- pulumi-output - Output values in string concatenation
- env-variable - reserved Lambda environment variables
- resource-dependency - circular and out-of-order resource links
- dynamo-indexing - DynamoDB fields not used by any index

The rule set is closed: new rules are added here and ship with a bumped
RULESET_VERSION.
"""

from typing import TYPE_CHECKING

from ..base import PatternCategory, PatternRule
from .cors_config import CorsConfigRule
from .domain_config import DomainConfigRule
from .dynamo_indexing import DynamoIndexingRule
from .env_variable import EnvVariableRule
from .pulumi_output import PulumiOutputRule
from .resource_dependency import ResourceDependencyRule
from .stage_variable import StageVariableRule

if TYPE_CHECKING:
    from ..config import PatternDetectionConfig

RULESET_VERSION = "1.1.0"

ALL_RULES: tuple[PatternRule, ...] = (
    StageVariableRule(),
    DomainConfigRule(),
    CorsConfigRule(),
    EnvVariableRule(),
    PulumiOutputRule(),
    ResourceDependencyRule(),
    DynamoIndexingRule(),
)


def get_rule_by_id(rule_id: str) -> PatternRule | None:
    """Get a built-in rule by ID."""
    for rule in ALL_RULES:
        if rule.rule_id == rule_id:
            return rule
    return None


def get_rules_by_category(category: PatternCategory | str) -> list[PatternRule]:
    """Get built-in rules whose primary category matches."""
    category = PatternCategory(category)
    return [rule for rule in ALL_RULES if rule.category == category]


def get_enabled_rules(
    config: "PatternDetectionConfig | None" = None,
) -> list[PatternRule]:
    """Get built-in rules enabled by default or by configuration.

    Args:
        config: Optional configuration with per-rule toggles

    Returns:
        Rules in registry order
    """
    if config is None:
        return [rule for rule in ALL_RULES if rule.enabled_by_default]
    return [
        rule
        for rule in ALL_RULES
        if config.is_rule_enabled(rule.rule_id, rule.enabled_by_default)
    ]


__all__ = [
    "ALL_RULES",
    "RULESET_VERSION",
    "get_enabled_rules",
    "get_rule_by_id",
    "get_rules_by_category",
    # Rules
    "CorsConfigRule",
    "DomainConfigRule",
    "DynamoIndexingRule",
    "EnvVariableRule",
    "PulumiOutputRule",
    "ResourceDependencyRule",
    "StageVariableRule",
]
