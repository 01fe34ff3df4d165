"""Private page protection configuration.

Defines the validated configuration model shared by the rule extractor,
the evaluator and the page guard.  The defaults reproduce the behaviour of
the original wiki extension, so ``ProtectionConfig()`` is a complete
configuration.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from page_protection.core.types import RULE_SEPARATOR, EmptyRulePolicy


class ProtectionConfig(BaseModel):
    """Configuration for page protection."""

    model_config = ConfigDict(strict=True, frozen=True)

    property_name: str = Field(
        default="allowed_groups",
        min_length=1,
        description="Name of the page property holding the stored rule.",
    )
    directive_name: str = Field(
        default="allow-groups",
        min_length=1,
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Name of the inline directive, as in {{#allow-groups: ...}}.",
    )
    separator: str = Field(
        default=RULE_SEPARATOR,
        min_length=1,
        max_length=1,
        description=(
            "Character joining group ids in the stored rule.  It must not "
            "occur in group names."
        ),
    )
    empty_rule_policy: EmptyRulePolicy = Field(
        default=EmptyRulePolicy.UNRESTRICTED,
        description=(
            "Treatment of a declared rule that yields no usable group "
            "(e.g. only whitespace arguments)."
        ),
    )
    default_language: str = Field(
        default="en",
        min_length=1,
        description="Language used to render errors when none is requested.",
    )
    read_message_key: str = Field(
        default="badaccess-groups",
        description="Message key for denials on the read path.",
    )
    lockout_message_key: str = Field(
        default="privatepp-lockout-prevented",
        description="Message key for prevented self-lockouts on save.",
    )
