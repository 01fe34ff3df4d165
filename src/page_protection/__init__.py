"""Private Page Protection.

Restricts access to individual pages of a collaboratively edited content
repository to the user groups the page itself declares::

    {{#allow-groups: sysop | bot}}

Components
----------
1. Rule extraction (:mod:`page_protection.rules`) -- directives to the
   stored ``allowed_groups`` rule.
2. Access evaluation (:mod:`page_protection.access`) -- ALLOW/DENY for a
   user, on read and as a self-lockout guard on save.

Only narrowing is possible: a page rule never grants anything the host's
own permission system denies.  Transclusion, search and listings may
still reveal a protected page.
"""
from __future__ import annotations

__version__ = "1.0.0a1"

from page_protection.access import PageGuard, evaluate, lockout_check
from page_protection.core.config import ProtectionConfig
from page_protection.core.errors import (
    AccessDenied,
    AccessError,
    ConfigurationError,
    LockoutPrevented,
    PageProtectionError,
)
from page_protection.core.interfaces import (
    DefaultGroupNameLookup,
    GroupMembershipService,
    GroupNameLookup,
    InMemoryGroupMembershipService,
    InMemoryPageStore,
    PageStore,
)
from page_protection.core.types import (
    RULE_SEPARATOR,
    AccessDecision,
    AccessRule,
    Decision,
    DenialDescriptor,
    EmptyRulePolicy,
    GroupId,
    PageId,
    ParseResult,
    SaveResult,
    SaveState,
    UserGroupSet,
)
from page_protection.i18n import MessageCatalog
from page_protection.rules import (
    DirectiveScanner,
    decode_rule,
    encode_rule,
    extract,
    extract_all,
    normalize_group,
)
from page_protection.storage import SqlitePageStore

__all__ = [
    "__version__",
    # Access
    "PageGuard",
    "evaluate",
    "lockout_check",
    # Rules
    "DirectiveScanner",
    "decode_rule",
    "encode_rule",
    "extract",
    "extract_all",
    "normalize_group",
    # Config / errors
    "ProtectionConfig",
    "PageProtectionError",
    "AccessError",
    "AccessDenied",
    "LockoutPrevented",
    "ConfigurationError",
    # Interfaces
    "PageStore",
    "GroupMembershipService",
    "GroupNameLookup",
    "InMemoryPageStore",
    "InMemoryGroupMembershipService",
    "DefaultGroupNameLookup",
    "SqlitePageStore",
    "MessageCatalog",
    # Types
    "RULE_SEPARATOR",
    "AccessDecision",
    "AccessRule",
    "Decision",
    "DenialDescriptor",
    "EmptyRulePolicy",
    "GroupId",
    "PageId",
    "ParseResult",
    "SaveResult",
    "SaveState",
    "UserGroupSet",
]
