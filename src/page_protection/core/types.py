"""Private page protection shared domain types.

This module defines the value types, enums and models shared by the rule
extractor, the access evaluator and the page guard.  All public symbols are
re-exported from :mod:`page_protection`.

Key design decisions:
* ``GroupId`` is a ``NewType`` wrapper around ``str`` holding a *normalized*
  (trimmed, lowercased) group identifier.
* :class:`AccessRule` keeps the groups exactly as declared, including
  duplicates and empty segments; :meth:`AccessRule.required_groups` is the
  view used for evaluation.
* Decisions are plain frozen dataclasses: the evaluator returns them as data
  and never raises.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, NewType

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from page_protection.core.errors import AccessError

# ---------------------------------------------------------------------------
# Value types (NewType wrappers)
# ---------------------------------------------------------------------------

GroupId = NewType("GroupId", str)
"""A normalized group identifier, e.g. ``sysop``."""

PageId = NewType("PageId", int)
"""Numeric page identity.  ``0`` denotes a page that does not exist yet."""

UserGroupSet = frozenset[str]
"""The effective groups a user belongs to at evaluation time."""

RULE_SEPARATOR = "|"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Decision(enum.StrEnum):
    """Outcome of an access check."""

    ALLOW = "allow"
    DENY = "deny"


class EmptyRulePolicy(enum.StrEnum):
    """How a declared rule without any usable group is treated.

    * **UNRESTRICTED** -- nothing is required, so everyone passes.
    * **DENY_ALL** -- nobody matches, so everyone is denied.
    """

    UNRESTRICTED = "unrestricted"
    DENY_ALL = "deny_all"


class SaveState(enum.StrEnum):
    """States of the write path for a single revision."""

    PARSING = "parsing"
    RULE_BUILT = "rule_built"
    LOCKOUT_CHECKED = "lockout_checked"
    PERSISTED = "persisted"
    ABORTED = "aborted"


# ---------------------------------------------------------------------------
# Access rule
# ---------------------------------------------------------------------------

class AccessRule(BaseModel):
    """The groups allowed to access one page, in declaration order."""

    model_config = ConfigDict(frozen=True)

    groups: tuple[GroupId, ...] = Field(
        default=(),
        description="Normalized group ids as declared, empties included.",
    )

    def required_groups(self) -> tuple[GroupId, ...]:
        """Return the de-duplicated, non-empty groups in declaration order."""
        seen: dict[GroupId, None] = {}
        for group in self.groups:
            if group:
                seen.setdefault(group, None)
        return tuple(seen)

    def is_actionable(self) -> bool:
        """Return ``True`` if at least one non-empty group is required."""
        return any(self.groups)

    def encode(self, separator: str = RULE_SEPARATOR) -> str:
        """Serialise the rule to its stored string form."""
        return separator.join(self.groups)

    def __str__(self) -> str:
        return self.encode()


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DenialDescriptor:
    """Payload of a denial: every group that would have granted access.

    Attributes
    ----------
    group_names:
        Human-readable display names of all required groups.
    count:
        Number of required groups (drives pluralisation of the message).
    """

    group_names: tuple[str, ...]
    count: int


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Result of evaluating a rule against a user's groups.

    Attributes
    ----------
    decision:
        ``ALLOW`` or ``DENY``.
    descriptor:
        The denial payload; ``None`` when access is allowed.
    error:
        The error value describing the denial (an
        :class:`~page_protection.core.errors.AccessDenied` or
        :class:`~page_protection.core.errors.LockoutPrevented`).  It is
        constructed but never raised by the evaluator.
    """

    decision: Decision
    descriptor: DenialDescriptor | None = None
    error: AccessError | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW

    @classmethod
    def allow(cls) -> AccessDecision:
        return cls(decision=Decision.ALLOW)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of scanning one document for access directives.

    Attributes
    ----------
    rule:
        The accumulated rule string, or ``None`` when no directive declared
        any group.
    rendered:
        The document text with every directive removed.
    directives:
        Number of directive occurrences encountered (including no-ops).
    """

    rule: str | None
    rendered: str
    directives: int = 0


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of a successful save through the page guard."""

    page_id: PageId
    revision_id: int
    rule: str | None
    state: SaveState = SaveState.PERSISTED
