"""Shared fixtures for the conformance tests.

Provides a page guard wired to in-memory stores and a small set of users
with known group memberships.
"""
from __future__ import annotations

import pytest

from page_protection.access.guard import PageGuard
from page_protection.core.interfaces import (
    InMemoryGroupMembershipService,
    InMemoryPageStore,
)
from page_protection.core.types import PageId

# ---------------------------------------------------------------------------
# Common pages and users used across tests
# ---------------------------------------------------------------------------
PAGE = PageId(1)
SYSOP = "Alice"
BOT = "MaintenanceBot"
READER = "Bob"


@pytest.fixture()
def page_store() -> InMemoryPageStore:
    return InMemoryPageStore()


@pytest.fixture()
def memberships() -> InMemoryGroupMembershipService:
    return InMemoryGroupMembershipService(
        {
            SYSOP: {"sysop"},
            BOT: {"bot"},
            READER: set(),
        }
    )


@pytest.fixture()
def guard(
    page_store: InMemoryPageStore, memberships: InMemoryGroupMembershipService
) -> PageGuard:
    return PageGuard(page_store=page_store, groups=memberships)
