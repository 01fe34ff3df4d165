"""Rule extraction -- from directive arguments to a stored rule.

A page declares who may access it with one or more directives::

    {{#allow-groups: sysop | bot}}
    {{#allow-groups: Admin}}

Each occurrence is handed to :func:`extract` together with the rule
accumulated so far in the same parse pass.  The result is the value stored
as the page's ``allowed_groups`` property, here ``"sysop|bot|admin"``.

Extraction only ever *extends* the accumulated rule.  A directive without
arguments leaves it untouched, so ``{{#allow-groups}}`` can stand on a page
as a placeholder without any effect.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence

from page_protection.core.types import RULE_SEPARATOR, AccessRule, GroupId


def normalize_group(name: str) -> GroupId:
    """Trim surrounding whitespace and lowercase *name*."""
    return GroupId(name.strip().lower())


def extract(
    arguments: Sequence[str],
    existing_rule: str | None = None,
    *,
    separator: str = RULE_SEPARATOR,
) -> str | None:
    """Merge the groups of one directive into the accumulated rule.

    Parameters
    ----------
    arguments:
        The directive arguments, one group per argument.
    existing_rule:
        The rule accumulated by earlier directives of the same parse, or
        ``None`` if there were none.
    separator:
        Rule separator.  An argument containing it is split, since the
        stored form could not tell it apart from several arguments anyway.

    Returns
    -------
    str | None
        The new rule string.  With no arguments, *existing_rule* unchanged.
    """
    if not arguments:
        return existing_rule

    groups = separator.join(
        normalize_group(part)
        for argument in arguments
        for part in argument.split(separator)
    )
    if existing_rule:
        return existing_rule + separator + groups
    return groups


def extract_all(
    directives: Iterable[Sequence[str]],
    existing_rule: str | None = None,
    *,
    separator: str = RULE_SEPARATOR,
) -> str | None:
    """Fold :func:`extract` over the directives of one parse pass."""
    rule = existing_rule
    for arguments in directives:
        rule = extract(arguments, rule, separator=separator)
    return rule


# ---------------------------------------------------------------------------
# Storage boundary
# ---------------------------------------------------------------------------

def decode_rule(value: str | None, *, separator: str = RULE_SEPARATOR) -> AccessRule | None:
    """Parse a stored rule string.

    ``None`` means that no rule is stored.  ``""`` is a declared rule
    without groups.  Empty segments (``"a||b"``) are kept; they never match
    any group.
    """
    if value is None:
        return None
    return AccessRule(groups=tuple(GroupId(g) for g in value.split(separator)))


def encode_rule(rule: AccessRule | None, *, separator: str = RULE_SEPARATOR) -> str | None:
    """Serialise *rule* for storage; ``None`` stays ``None``."""
    if rule is None:
        return None
    return rule.encode(separator)
