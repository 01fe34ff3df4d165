"""Tests for the page guard read and save pipelines.

1. **Read path** -- stored rule lookup, cache bypass, denial as an error.
2. **Save path** -- rule persistence, self-lockout prevention, atomicity.
3. **Error rendering** -- localized messages for both error kinds.
"""
from __future__ import annotations

import asyncio

import pytest

from page_protection.access.guard import PageGuard
from page_protection.core.config import ProtectionConfig
from page_protection.core.errors import AccessDenied, LockoutPrevented
from page_protection.core.interfaces import (
    GroupMembershipService,
    InMemoryGroupMembershipService,
    InMemoryPageStore,
    PageStore,
)
from page_protection.core.types import Decision, EmptyRulePolicy, PageId, SaveState

PAGE = PageId(42)


class YieldingPageStore(InMemoryPageStore):
    """In-memory store that suspends on every call, like a real backend."""

    async def get_properties(self, page_id: PageId, name: str) -> list[str]:
        await asyncio.sleep(0)
        return await super().get_properties(page_id, name)

    async def save_revision(
        self, page_id: PageId, text: str, properties: dict[str, str]
    ) -> int:
        await asyncio.sleep(0)
        return await super().save_revision(page_id, text, properties)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def page_store() -> InMemoryPageStore:
    return InMemoryPageStore()


@pytest.fixture
def memberships() -> InMemoryGroupMembershipService:
    return InMemoryGroupMembershipService(
        {
            "alice": {"sysop"},
            "bob": set(),
            "robot": {"bot"},
        }
    )


@pytest.fixture
def guard(
    page_store: InMemoryPageStore, memberships: InMemoryGroupMembershipService
) -> PageGuard:
    return PageGuard(page_store=page_store, groups=memberships)


# ===================================================================
# 0. Interfaces
# ===================================================================

class TestInterfaces:
    def test_in_memory_implementations_satisfy_protocols(
        self,
        page_store: InMemoryPageStore,
        memberships: InMemoryGroupMembershipService,
    ) -> None:
        assert isinstance(page_store, PageStore)
        assert isinstance(memberships, GroupMembershipService)


# ===================================================================
# 1. Read path
# ===================================================================

class TestReadPath:
    """Tests for PageGuard.check_permission and friends."""

    @pytest.mark.asyncio
    async def test_unprotected_page_allows(self, guard: PageGuard) -> None:
        decision = await guard.check_permission(PAGE, "bob")
        assert decision.allowed

    @pytest.mark.asyncio
    async def test_nonexistent_page_has_no_rule(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PageId(0), "allowed_groups", "sysop")
        assert await guard.allowed_groups(PageId(0)) is None
        assert await guard.allowed_groups(None) is None

    @pytest.mark.asyncio
    async def test_member_allowed(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop|bot")
        assert (await guard.check_permission(PAGE, "robot")).allowed

    @pytest.mark.asyncio
    async def test_non_member_denied(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop|bot")
        decision = await guard.check_permission(PAGE, "bob")
        assert decision.decision is Decision.DENY
        assert decision.descriptor is not None
        assert decision.descriptor.group_names == ("Sysop", "Bot")
        assert decision.descriptor.count == 2

    @pytest.mark.asyncio
    async def test_rule_applies_to_every_action(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop")
        for action in ("read", "edit", "move", "delete"):
            assert not (await guard.check_permission(PAGE, "bob", action)).allowed

    @pytest.mark.asyncio
    async def test_require_permission_raises(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop")
        with pytest.raises(AccessDenied) as exc_info:
            await guard.require_permission(PAGE, "bob")
        assert exc_info.value.group_names == ("Sysop",)
        assert exc_info.value.http_status == 403

    @pytest.mark.asyncio
    async def test_membership_never_served_from_cache(
        self,
        guard: PageGuard,
        page_store: InMemoryPageStore,
        memberships: InMemoryGroupMembershipService,
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop")
        # Warm the membership cache with alice as a sysop.
        await memberships.effective_groups("alice")
        memberships.set_groups("alice", set())

        decision = await guard.check_permission(PAGE, "alice")
        assert not decision.allowed
        assert memberships.uncached_lookups == 2

    @pytest.mark.asyncio
    async def test_read_page_strips_directives(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        await page_store.save_revision(PAGE, "Hello {{#allow-groups}}world", {})
        assert await guard.read_page(PAGE, "bob") == "Hello world"

    @pytest.mark.asyncio
    async def test_read_page_denied_returns_no_content(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        await page_store.save_revision(
            PAGE, "{{#allow-groups: sysop}}secret", {"allowed_groups": "sysop"}
        )
        with pytest.raises(AccessDenied):
            await guard.read_page(PAGE, "bob")
        assert await guard.read_page(PAGE, "alice") == "secret"

    @pytest.mark.asyncio
    async def test_read_page_missing(self, guard: PageGuard) -> None:
        assert await guard.read_page(PAGE, "bob") is None


# ===================================================================
# 2. Save path
# ===================================================================

class TestSavePath:
    """Tests for PageGuard.save_revision."""

    @pytest.mark.asyncio
    async def test_save_persists_rule(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        result = await guard.save_revision(
            PAGE, "{{#allow-groups: Sysop}} text {{#allow-groups: Bot | Admin}}", "alice"
        )
        assert result.state is SaveState.PERSISTED
        assert result.rule == "sysop|bot|admin"
        assert await page_store.get_property(PAGE, "allowed_groups") == "sysop|bot|admin"

    @pytest.mark.asyncio
    async def test_save_without_directive_stores_no_rule(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        result = await guard.save_revision(PAGE, "{{#allow-groups}} open", "bob")
        assert result.rule is None
        assert await page_store.get_property(PAGE, "allowed_groups") is None

    @pytest.mark.asyncio
    async def test_lockout_prevented(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        with pytest.raises(LockoutPrevented) as exc_info:
            await guard.save_revision(PAGE, "{{#allow-groups: sysop | bot}}", "bob")
        assert exc_info.value.group_names == ("Sysop", "Bot")
        assert exc_info.value.count == 2
        assert page_store.revision_count(PAGE) == 0
        assert await page_store.get_property(PAGE, "allowed_groups") is None

    @pytest.mark.asyncio
    async def test_lockout_checks_new_rule_not_stored_one(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        await guard.save_revision(PAGE, "{{#allow-groups: sysop}}", "alice")
        # alice narrows the page to bots only; she would lose access.
        with pytest.raises(LockoutPrevented):
            await guard.save_revision(PAGE, "{{#allow-groups: bot}}", "alice")
        assert await page_store.get_property(PAGE, "allowed_groups") == "sysop"
        assert page_store.revision_count(PAGE) == 1

    @pytest.mark.asyncio
    async def test_removing_directive_lifts_restriction(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        await guard.save_revision(PAGE, "{{#allow-groups: sysop}}", "alice")
        await guard.save_revision(PAGE, "now public", "alice")
        assert await guard.allowed_groups(PAGE) is None
        assert (await guard.check_permission(PAGE, "bob")).allowed

    @pytest.mark.asyncio
    async def test_non_member_cannot_edit_protected_page(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        await guard.save_revision(PAGE, "{{#allow-groups: sysop}}", "alice")
        with pytest.raises(AccessDenied):
            await guard.save_revision(PAGE, "defaced", "bob")
        assert page_store.revision_count(PAGE) == 1

    @pytest.mark.asyncio
    async def test_blank_declaration_is_unrestricted(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        result = await guard.save_revision(PAGE, "{{#allow-groups: | }}", "bob")
        assert result.rule == "|"
        assert (await guard.check_permission(PAGE, "bob")).allowed

    @pytest.mark.asyncio
    async def test_blank_declaration_under_deny_all(
        self,
        page_store: InMemoryPageStore,
        memberships: InMemoryGroupMembershipService,
    ) -> None:
        guard = PageGuard(
            page_store=page_store,
            groups=memberships,
            config=ProtectionConfig(empty_rule_policy=EmptyRulePolicy.DENY_ALL),
        )
        with pytest.raises(LockoutPrevented) as exc_info:
            await guard.save_revision(PAGE, "{{#allow-groups: | }}", "alice")
        assert exc_info.value.count == 0

    @pytest.mark.asyncio
    async def test_concurrent_saves_are_serialised(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        results = await asyncio.gather(
            guard.save_revision(PAGE, "{{#allow-groups: sysop}} a", "alice"),
            guard.save_revision(PAGE, "{{#allow-groups: sysop}} b", "alice"),
        )
        assert sorted(r.revision_id for r in results) == [1, 2]
        assert page_store.revision_count(PAGE) == 2

    @pytest.mark.asyncio
    async def test_concurrent_non_member_cannot_strip_new_rule(
        self, memberships: InMemoryGroupMembershipService
    ) -> None:
        """An edit check that waited on the lock sees the rule committed before it."""
        store = YieldingPageStore()
        guard = PageGuard(page_store=store, groups=memberships)
        protect, deface = await asyncio.gather(
            guard.save_revision(PAGE, "{{#allow-groups: sysop}} secret", "alice"),
            guard.save_revision(PAGE, "defaced", "bob"),
            return_exceptions=True,
        )
        assert not isinstance(protect, BaseException)
        assert isinstance(deface, AccessDenied)
        assert await guard.allowed_groups(PAGE) == "sysop"
        assert await store.get_text(PAGE) == "{{#allow-groups: sysop}} secret"
        assert store.revision_count(PAGE) == 1

    @pytest.mark.asyncio
    async def test_page_locks_released_after_saves(
        self, memberships: InMemoryGroupMembershipService
    ) -> None:
        guard = PageGuard(page_store=YieldingPageStore(), groups=memberships)
        await asyncio.gather(
            guard.save_revision(PAGE, "{{#allow-groups: sysop}} a", "alice"),
            guard.save_revision(PAGE, "{{#allow-groups: bot}} b", "alice"),
            guard.save_revision(PageId(43), "open", "bob"),
            return_exceptions=True,
        )
        assert guard._locks == {}
        assert guard._lock_users == {}

    def test_guard_reusable_across_event_loops(
        self, memberships: InMemoryGroupMembershipService
    ) -> None:
        guard = PageGuard(page_store=YieldingPageStore(), groups=memberships)

        async def contended_saves() -> None:
            await asyncio.gather(
                guard.save_revision(PAGE, "{{#allow-groups: sysop}} a", "alice"),
                guard.save_revision(PAGE, "{{#allow-groups: sysop}} b", "alice"),
            )

        asyncio.run(contended_saves())
        asyncio.run(contended_saves())
        assert guard._locks == {}

    @pytest.mark.asyncio
    async def test_custom_property_name(
        self,
        page_store: InMemoryPageStore,
        memberships: InMemoryGroupMembershipService,
    ) -> None:
        guard = PageGuard(
            page_store=page_store,
            groups=memberships,
            config=ProtectionConfig(property_name="ppp_allowed_groups"),
        )
        await guard.save_revision(PAGE, "{{#allow-groups: sysop}}", "alice")
        assert await page_store.get_property(PAGE, "ppp_allowed_groups") == "sysop"
        assert not (await guard.check_permission(PAGE, "bob")).allowed


# ===================================================================
# 3. Error rendering
# ===================================================================

class TestErrorRendering:
    """Tests for PageGuard.render_error."""

    @pytest.mark.asyncio
    async def test_render_read_denial(
        self, guard: PageGuard, page_store: InMemoryPageStore
    ) -> None:
        page_store.put_property(PAGE, "allowed_groups", "sysop|bot")
        decision = await guard.check_permission(PAGE, "bob")
        assert decision.error is not None
        text = guard.render_error(decision.error)
        assert text == (
            "The action you have requested is limited to users in "
            "one of the groups: Sysop, Bot."
        )

    @pytest.mark.asyncio
    async def test_render_lockout(self, guard: PageGuard) -> None:
        with pytest.raises(LockoutPrevented) as exc_info:
            await guard.save_revision(PAGE, "{{#allow-groups: sysop}}", "bob")
        text = guard.render_error(exc_info.value, lang="de")
        assert text.startswith("Die Aussperrung wurde verhindert")
        assert "die Benutzergruppe Sysop zu beschränken" in text
