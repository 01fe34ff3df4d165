"""Persistent page store backends."""
from __future__ import annotations

from page_protection.storage.sqlite import SqlitePageStore

__all__ = ["SqlitePageStore"]
