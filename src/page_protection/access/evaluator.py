"""Access evaluation -- deciding ALLOW or DENY for one user and one rule.

The decision is a single set intersection:

1. **No rule** -- the page is unrestricted, ALLOW.
2. **Required groups** -- split the rule on the separator, drop empty
   segments and duplicates.
3. **Nothing required** -- the declared rule names no usable group; the
   :class:`~page_protection.core.types.EmptyRulePolicy` decides.
4. **Intersection** -- ALLOW if the user is in at least one required group.
5. **Denial** -- otherwise DENY, listing the display names of *every*
   required group, since membership in any one of them would do.

:func:`evaluate` is pure: it performs no I/O and raises nothing.  The
denial error is built as a value and attached to the decision; the read
and save pipelines decide how to surface it.  :func:`lockout_check` runs the
same algorithm for the write path and attaches a
:class:`~page_protection.core.errors.LockoutPrevented` instead.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from page_protection.core.errors import AccessDenied, AccessError, LockoutPrevented
from page_protection.core.interfaces import DefaultGroupNameLookup
from page_protection.core.types import (
    RULE_SEPARATOR,
    AccessDecision,
    AccessRule,
    Decision,
    DenialDescriptor,
    EmptyRulePolicy,
)
from page_protection.rules.extractor import decode_rule, normalize_group

if TYPE_CHECKING:
    from page_protection.core.interfaces import GroupNameLookup

_DEFAULT_NAMES = DefaultGroupNameLookup()


def evaluate(
    rule: str | AccessRule | None,
    user_groups: Iterable[str],
    *,
    names: GroupNameLookup | None = None,
    lang: str | None = None,
    policy: EmptyRulePolicy = EmptyRulePolicy.UNRESTRICTED,
    separator: str = RULE_SEPARATOR,
    error_type: type[AccessError] = AccessDenied,
    message_key: str | None = None,
) -> AccessDecision:
    """Evaluate *rule* against the groups of the acting user.

    Parameters
    ----------
    rule:
        The stored rule string, a decoded :class:`AccessRule`, or ``None``
        when the page declares no restriction.
    user_groups:
        The user's effective groups, freshly computed.
    names:
        Display-name lookup for the denial payload.  Defaults to
        capitalizing the group id.
    lang:
        Language passed to *names*.
    policy:
        Treatment of a rule without any usable group.
    separator:
        Separator of the stored rule string.
    error_type:
        Error class attached to a denial.
    message_key:
        Overrides the message key of the attached error.

    Returns
    -------
    AccessDecision
        ``ALLOW``, or ``DENY`` with its descriptor and error value.
    """
    if isinstance(rule, str) or rule is None:
        rule = decode_rule(rule, separator=separator)
    if rule is None:
        return AccessDecision.allow()

    required = rule.required_groups()
    if not required:
        if policy is EmptyRulePolicy.UNRESTRICTED:
            return AccessDecision.allow()
        return _deny(
            (), names=names, lang=lang, error_type=error_type, message_key=message_key
        )

    member_of = {normalize_group(g) for g in user_groups}
    if member_of.intersection(required):
        return AccessDecision.allow()

    return _deny(
        required, names=names, lang=lang, error_type=error_type, message_key=message_key
    )


def lockout_check(
    new_rule: str | AccessRule | None,
    user_groups: Iterable[str],
    *,
    names: GroupNameLookup | None = None,
    lang: str | None = None,
    policy: EmptyRulePolicy = EmptyRulePolicy.UNRESTRICTED,
    separator: str = RULE_SEPARATOR,
    message_key: str | None = None,
) -> AccessDecision:
    """Check whether saving *new_rule* would lock the saving user out.

    *new_rule* is the rule produced by the revision about to be saved, not
    the one currently stored.  A denial carries a
    :class:`LockoutPrevented` error with the same payload a read denial
    would have.
    """
    return evaluate(
        new_rule,
        user_groups,
        names=names,
        lang=lang,
        policy=policy,
        separator=separator,
        error_type=LockoutPrevented,
        message_key=message_key,
    )


def _deny(
    required: tuple[str, ...],
    *,
    names: GroupNameLookup | None,
    lang: str | None,
    error_type: type[AccessError],
    message_key: str | None = None,
) -> AccessDecision:
    lookup = names or _DEFAULT_NAMES
    group_names = tuple(lookup.display_name(group, lang) for group in required)
    descriptor = DenialDescriptor(group_names=group_names, count=len(required))
    error = error_type(
        group_names,
        descriptor.count,
        message_key=message_key,
        details={"required_groups": list(required)},
    )
    return AccessDecision(decision=Decision.DENY, descriptor=descriptor, error=error)
