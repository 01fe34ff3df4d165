"""Private page protection abstract interfaces and in-memory implementations.

This module defines the *structural* interfaces (``typing.Protocol``) for
the collaborators consumed by the page guard, plus lightweight in-memory
implementations suitable for testing and local development.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

In-memory implementations are **not** safe to share between event loops or
threads.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from page_protection.core.types import PageId, UserGroupSet

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class PageStore(Protocol):
    """Backend holding page revisions and their page properties."""

    async def get_properties(self, page_id: PageId, name: str) -> list[str]:
        """Return every stored value of property *name* for the page."""
        ...

    async def get_property(self, page_id: PageId, name: str) -> str | None:
        """Return the property value, or ``None`` if the page has none."""
        ...

    async def save_revision(
        self, page_id: PageId, text: str, properties: dict[str, str]
    ) -> int:
        """Atomically store a new revision and replace the page properties.

        Properties not present in *properties* are removed.  Returns the
        new revision id.
        """
        ...

    async def get_text(self, page_id: PageId) -> str | None:
        """Return the text of the current revision, or ``None``."""
        ...


@runtime_checkable
class GroupMembershipService(Protocol):
    """Source of the effective groups of a user."""

    async def effective_groups(
        self, user: str, *, use_cache: bool = True
    ) -> UserGroupSet:
        """Return the user's effective groups.

        Access checks always pass ``use_cache=False``: a stale membership
        could grant access that has since been revoked.
        """
        ...


@runtime_checkable
class GroupNameLookup(Protocol):
    """Maps group ids to human-readable display names."""

    def display_name(self, group: str, lang: str | None = None) -> str:
        """Return the display name of *group* in *lang*."""
        ...


# ===================================================================
# In-memory implementations (testing / development)
# ===================================================================

class InMemoryPageStore:
    """In-memory page store for testing and development."""

    def __init__(self) -> None:
        self._revisions: dict[int, list[str]] = {}
        self._props: dict[int, dict[str, str]] = {}
        self._next_revision = 1

    # -- mutation helpers (not part of the Protocol) --------------------

    def put_property(self, page_id: PageId, name: str, value: str) -> None:
        """Set a single property without a revision (test helper)."""
        self._props.setdefault(int(page_id), {})[name] = value

    def revision_count(self, page_id: PageId) -> int:
        """Return the number of stored revisions (test helper)."""
        return len(self._revisions.get(int(page_id), []))

    # -- Protocol implementation ---------------------------------------

    async def get_properties(self, page_id: PageId, name: str) -> list[str]:
        value = self._props.get(int(page_id), {}).get(name)
        return [] if value is None else [value]

    async def get_property(self, page_id: PageId, name: str) -> str | None:
        return self._props.get(int(page_id), {}).get(name)

    async def save_revision(
        self, page_id: PageId, text: str, properties: dict[str, str]
    ) -> int:
        revision_id = self._next_revision
        self._next_revision += 1
        self._revisions.setdefault(int(page_id), []).append(text)
        self._props[int(page_id)] = dict(properties)
        return revision_id

    async def get_text(self, page_id: PageId) -> str | None:
        revisions = self._revisions.get(int(page_id))
        if not revisions:
            return None
        return revisions[-1]


class InMemoryGroupMembershipService:
    """In-memory group membership service with a read-through cache.

    The cache mimics a host that memoizes group lookups, so tests can verify
    that access checks always bypass it.
    """

    def __init__(self, memberships: dict[str, set[str]] | None = None) -> None:
        self._memberships: dict[str, set[str]] = {
            user: set(groups) for user, groups in (memberships or {}).items()
        }
        self._cache: dict[str, UserGroupSet] = {}
        self.uncached_lookups = 0

    def set_groups(self, user: str, groups: set[str]) -> None:
        """Replace the memberships of *user* (test helper)."""
        self._memberships[user] = set(groups)

    async def effective_groups(
        self, user: str, *, use_cache: bool = True
    ) -> UserGroupSet:
        if use_cache and user in self._cache:
            return self._cache[user]
        self.uncached_lookups += 1
        # Every user, including anonymous ones, is in the implicit "*" group.
        groups = frozenset(self._memberships.get(user, set()) | {"*"})
        if user:
            groups |= {"user"}
        self._cache[user] = groups
        return groups


class DefaultGroupNameLookup:
    """Display names from an optional table, else the capitalized id.

    ``sysop`` becomes ``Sysop`` unless *names* says otherwise.
    """

    def __init__(self, names: dict[str, dict[str, str]] | None = None) -> None:
        # lang -> group -> display name
        self._names = names or {}

    def display_name(self, group: str, lang: str | None = None) -> str:
        if lang is not None:
            localized = self._names.get(lang, {}).get(group)
            if localized:
                return localized
        fallback = self._names.get("en", {}).get(group)
        if fallback:
            return fallback
        return group[:1].upper() + group[1:]
