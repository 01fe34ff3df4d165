"""Private page protection error hierarchy.

Hierarchy
---------
::

    PageProtectionError        (PPP-E000)
    +-- AccessError            (PPP-E1xx)
    |   +-- AccessDenied       (PPP-E100)  read path
    |   +-- LockoutPrevented   (PPP-E101)  write path
    +-- ConfigurationError     (PPP-E900)

The two access errors share one payload shape (the display names of every
group that would grant access, and their count) and differ only in their
code and message key.  The evaluator *returns* them inside an
:class:`~page_protection.core.types.AccessDecision`; it is up to the read
and save pipelines to raise them or translate them into a host failure.

Usage
-----
Catch by category::

    try:
        await guard.save_revision(page_id, text, user)
    except LockoutPrevented as exc:
        show_form_error(guard.render_error(exc, lang="de"))
    except AccessError:
        ...
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class PageProtectionError(Exception):
    """Base exception for all page protection errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"PPP-E100"``.
    http_status : int
        Recommended HTTP status code for this error.
    message : str
        English, non-localized description for logs.
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    """

    code: str = "PPP-E000"
    http_status: int = 500
    message: str = "Unknown page protection error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a JSON-friendly mapping."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Access errors
# ===================================================================

class AccessError(PageProtectionError):
    """PPP-E1xx -- The acting user is not in any group the page requires.

    Attributes
    ----------
    group_names : tuple[str, ...]
        Display names of every group that would have granted access.
    count : int
        Number of required groups.
    message_key : str
        Key of the localized message template used to render the error.
    """

    code = "PPP-E1XX"
    http_status = 403
    message_key: str = "badaccess-groups"

    def __init__(
        self,
        group_names: Sequence[str] = (),
        count: int | None = None,
        *,
        message: str | None = None,
        message_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.group_names: tuple[str, ...] = tuple(group_names)
        self.count: int = len(self.group_names) if count is None else count
        if message_key is not None:
            self.message_key = message_key
        super().__init__(message, details=details)

    def message_params(self, separator: str = ", ") -> tuple[str, int]:
        """Return the ``($1, $2)`` parameters of the message template."""
        return separator.join(self.group_names), self.count

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["error"]["message_key"] = self.message_key
        payload["error"]["groups"] = list(self.group_names)
        payload["error"]["count"] = self.count
        return payload


class AccessDenied(AccessError):
    """PPP-E100 -- Reading (or otherwise acting on) a protected page."""

    code = "PPP-E100"
    http_status = 403
    message = "You are not a member of any group allowed to access this page"
    message_key = "badaccess-groups"


class LockoutPrevented(AccessError):
    """PPP-E101 -- A save would lock the saving user out of the page."""

    code = "PPP-E101"
    http_status = 409
    message = (
        "Saving was aborted: the new access restriction would lock you "
        "out of this page"
    )
    message_key = "privatepp-lockout-prevented"


# ===================================================================
# Configuration errors
# ===================================================================

class ConfigurationError(PageProtectionError):
    """PPP-E900 -- The protection layer is wired up incorrectly."""

    code = "PPP-E900"
    http_status = 500
    message = "Page protection is misconfigured"
