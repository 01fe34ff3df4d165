#!/usr/bin/env python3
"""Private page protection quickstart.

Demonstrates the core workflow:

1. Create a page guard with in-memory stores.
2. Save a page that restricts itself to the ``sysop`` group.
3. Read it as a member and as a non-member.
4. Try a save that would lock the editor out.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio
import logging

from page_protection import (
    AccessDenied,
    InMemoryGroupMembershipService,
    InMemoryPageStore,
    LockoutPrevented,
    PageGuard,
    PageId,
)


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # -- Step 1: Create the guard --------------------------------------------
    guard = PageGuard(
        page_store=InMemoryPageStore(),
        groups=InMemoryGroupMembershipService(
            {"Alice": {"sysop"}, "Bob": set()}
        ),
    )
    page = PageId(1)

    # -- Step 2: Save a protected page ---------------------------------------
    result = await guard.save_revision(
        page, "{{#allow-groups: Sysop}}Quarterly numbers: 42", "Alice"
    )
    print(f"[2] Saved revision {result.revision_id}, rule={result.rule!r}")

    # -- Step 3: Read as member and non-member -------------------------------
    print(f"[3] Alice reads: {await guard.read_page(page, 'Alice')!r}")
    try:
        await guard.read_page(page, "Bob")
    except AccessDenied as exc:
        print(f"[3] Bob is denied: {guard.render_error(exc)}")

    # -- Step 4: Prevented lockout -------------------------------------------
    try:
        await guard.save_revision(page, "{{#allow-groups: bot}}Moved to bots", "Alice")
    except LockoutPrevented as exc:
        print(f"[4] {guard.render_error(exc)}")


if __name__ == "__main__":
    asyncio.run(main())
