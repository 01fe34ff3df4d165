"""Page guard -- the read and save pipelines around the evaluator.

This module implements the :class:`PageGuard` class, the entry point a host
content system calls at two points of a page's life.

Read path
---------
1. **Fetch** the stored rule (page property ``allowed_groups``).
2. **Resolve** the acting user's effective groups, bypassing any cache.
3. **Evaluate**; a denial is terminal for the request.

Write path
----------
``PARSING -> RULE_BUILT -> LOCKOUT_CHECKED -> PERSISTED | ABORTED``

1. **Parse** the new revision and build the rule it declares.
2. **Lockout check** the *new* rule against the saving user.
3. **Persist** revision text and rule in one store call, or abort without
   writing anything.

The edit check against the stored rule and steps 2 and 3 run under a
per-page lock, so no save of the same page can slip in between the checks
and the write.  A page's lock is discarded once no save holds or awaits it.

Usage
-----
::

    guard = PageGuard(
        page_store=InMemoryPageStore(),
        groups=InMemoryGroupMembershipService({"alice": {"sysop"}}),
    )
    await guard.save_revision(PageId(1), "{{#allow-groups: sysop}} Hi", "alice")
    decision = await guard.check_permission(PageId(1), "bob")
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from page_protection.access.evaluator import evaluate, lockout_check
from page_protection.core.config import ProtectionConfig
from page_protection.core.errors import AccessDenied, LockoutPrevented
from page_protection.core.interfaces import DefaultGroupNameLookup
from page_protection.core.types import (
    AccessDecision,
    PageId,
    ParseResult,
    SaveResult,
    SaveState,
    UserGroupSet,
)
from page_protection.i18n import MessageCatalog
from page_protection.rules.directives import DirectiveScanner

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from page_protection.core.errors import AccessError
    from page_protection.core.interfaces import (
        GroupMembershipService,
        GroupNameLookup,
        PageStore,
    )

logger = logging.getLogger(__name__)


class PageGuard:
    """Checks page access on read and prevents self-lockout on save.

    Parameters
    ----------
    page_store:
        Backend holding revisions and page properties.
    groups:
        Source of users' effective groups.  Always queried with
        ``use_cache=False``.
    names:
        Display-name lookup for denial payloads.
    messages:
        Message catalog used by :meth:`render_error`.
    config:
        Protection configuration.  Defaults to ``ProtectionConfig()``.
    """

    def __init__(
        self,
        page_store: PageStore,
        groups: GroupMembershipService,
        names: GroupNameLookup | None = None,
        messages: MessageCatalog | None = None,
        config: ProtectionConfig | None = None,
    ) -> None:
        self._store = page_store
        self._groups = groups
        self._names = names or DefaultGroupNameLookup()
        self._messages = messages or MessageCatalog()
        self._config = config or ProtectionConfig()
        self._scanner = DirectiveScanner(self._config)
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}

    @property
    def config(self) -> ProtectionConfig:
        return self._config

    @property
    def scanner(self) -> DirectiveScanner:
        return self._scanner

    # -- Read path ----------------------------------------------------------

    async def allowed_groups(self, page_id: PageId | None) -> str | None:
        """Return the stored rule of the page, or ``None`` if it declares none.

        A page that does not exist yet (id ``None`` or ``0``) has no rule.
        """
        if not page_id:
            return None
        values = await self._store.get_properties(page_id, self._config.property_name)
        if not values:
            return None
        return self._config.separator.join(values)

    async def user_groups(self, user: str) -> UserGroupSet:
        """Return the user's effective groups, never from a cache."""
        return await self._groups.effective_groups(user, use_cache=False)

    async def check_permission(
        self,
        page_id: PageId | None,
        user: str,
        action: str = "read",
        *,
        lang: str | None = None,
    ) -> AccessDecision:
        """Decide whether *user* may perform *action* on the page.

        The stored rule applies to every action, not just reading; a user
        who may not read a page may not edit it either.
        """
        rule = await self.allowed_groups(page_id)
        if rule is None:
            return AccessDecision.allow()

        decision = evaluate(
            rule,
            await self.user_groups(user),
            names=self._names,
            lang=lang or self._config.default_language,
            policy=self._config.empty_rule_policy,
            separator=self._config.separator,
            message_key=self._config.read_message_key,
        )
        if not decision.allowed:
            logger.info(
                "Denied %s on page %s for user %r (requires %s)",
                action,
                page_id,
                user,
                rule,
            )
        return decision

    async def require_permission(
        self,
        page_id: PageId | None,
        user: str,
        action: str = "read",
        *,
        lang: str | None = None,
    ) -> None:
        """Like :meth:`check_permission`, but raise on denial.

        Raises
        ------
        AccessDenied
            If the user is not in any of the required groups.
        """
        decision = await self.check_permission(page_id, user, action, lang=lang)
        if not decision.allowed:
            raise decision.error or AccessDenied()

    async def read_page(
        self, page_id: PageId, user: str, *, lang: str | None = None
    ) -> str | None:
        """Return the rendered text of the page if *user* may read it.

        Raises
        ------
        AccessDenied
            If the user is not in any of the required groups.  No content
            is fetched in that case.
        """
        await self.require_permission(page_id, user, "read", lang=lang)
        text = await self._store.get_text(page_id)
        if text is None:
            return None
        return self._scanner.render(text)

    # -- Write path ---------------------------------------------------------

    def parse(self, text: str) -> ParseResult:
        """Parse a revision and build the rule it declares."""
        return self._scanner.parse(text)

    async def check_save(
        self, rule: str | None, user: str, *, lang: str | None = None
    ) -> AccessDecision:
        """Lockout check of a pending *rule* against the saving user."""
        if rule is None:
            return AccessDecision.allow()
        return lockout_check(
            rule,
            await self.user_groups(user),
            names=self._names,
            lang=lang or self._config.default_language,
            policy=self._config.empty_rule_policy,
            separator=self._config.separator,
            message_key=self._config.lockout_message_key,
        )

    async def save_revision(
        self,
        page_id: PageId,
        text: str,
        user: str,
        *,
        lang: str | None = None,
    ) -> SaveResult:
        """Save a new revision of the page unless it would lock *user* out.

        Parameters
        ----------
        page_id:
            The page being saved.
        text:
            Markup of the new revision.
        user:
            The saving user.
        lang:
            Language of the display names in a lockout error.

        Returns
        -------
        SaveResult
            Revision id and the rule now in force.

        Raises
        ------
        AccessDenied
            If the page as currently stored does not let *user* edit it.
        LockoutPrevented
            If the user is in none of the groups the new revision
            requires.  Nothing is written.
        """
        state = SaveState.PARSING
        parsed = self.parse(text)
        state = self._advance(page_id, state, SaveState.RULE_BUILT)

        async with self._page_lock(page_id):
            # The stored rule may have changed while this save waited.
            await self.require_permission(page_id, user, "edit", lang=lang)
            decision = await self.check_save(parsed.rule, user, lang=lang)
            state = self._advance(page_id, state, SaveState.LOCKOUT_CHECKED)
            if not decision.allowed:
                self._advance(page_id, state, SaveState.ABORTED)
                logger.warning(
                    "Prevented lockout of user %r from page %s (rule %r)",
                    user,
                    page_id,
                    parsed.rule,
                )
                raise decision.error or LockoutPrevented()

            properties: dict[str, str] = {}
            if parsed.rule is not None:
                properties[self._config.property_name] = parsed.rule
            revision_id = await self._store.save_revision(page_id, text, properties)
            state = self._advance(page_id, state, SaveState.PERSISTED)

        return SaveResult(
            page_id=page_id,
            revision_id=revision_id,
            rule=parsed.rule,
            state=state,
        )

    # -- Presentation -------------------------------------------------------

    def render_error(self, error: AccessError, lang: str | None = None) -> str:
        """Render *error* with the message catalog."""
        return self._messages.render_error(error, lang or self._config.default_language)

    @contextlib.asynccontextmanager
    async def _page_lock(self, page_id: PageId) -> AsyncIterator[None]:
        """Hold the save lock of *page_id*; forget it once nobody uses it."""
        key = int(page_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    @staticmethod
    def _advance(page_id: PageId, current: SaveState, target: SaveState) -> SaveState:
        logger.debug("Save of page %s: %s -> %s", page_id, current, target)
        return target
