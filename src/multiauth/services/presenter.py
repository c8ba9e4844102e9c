"""Presentation helpers — input validation and display formatting.

Ordering and rounding here are display concerns only; the registry makes
no ordering promise of its own.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from multiauth.errors import InvalidPasscodeInput
from multiauth.registry.store import ActivePasscode

EMPTY_GENERATE_MESSAGE = "Enter a numeric passcode."
EMPTY_CHECK_MESSAGE = "Enter a passcode to check."
NOT_NUMERIC_MESSAGE = "Passcode must be numeric."
NO_ACTIVE_MESSAGE = "No active passcodes"

RENEWED_MESSAGE = "Passcode existed and expiry reset (true)."
CREATED_MESSAGE = "New passcode created (false)."
VALID_MESSAGE = "Valid (not expired)"
INVALID_MESSAGE = "Invalid or expired"


def parse_passcode_input(raw: str | None, empty_message: str) -> str:
    """Strip *raw* and ensure it is a non-empty string of ASCII digits.

    Raises :class:`InvalidPasscodeInput` with a user-facing message otherwise.
    """
    code = (raw or "").strip()
    if not code:
        raise InvalidPasscodeInput(empty_message)
    if not (code.isascii() and code.isdigit()):
        raise InvalidPasscodeInput(NOT_NUMERIC_MESSAGE)
    return code


def remaining_seconds(remaining_ms: int) -> int:
    """Whole seconds left, rounded up so ``1ms`` still shows as ``1s``."""
    return math.ceil(remaining_ms / 1000)


def sort_soonest_first(entries: Iterable[ActivePasscode]) -> list[ActivePasscode]:
    return sorted(entries, key=lambda e: e.remaining_ms)


def render_lines(entries: Iterable[ActivePasscode]) -> list[str]:
    """Format entries for a text display, soonest-expiring first."""
    ordered = sort_soonest_first(entries)
    if not ordered:
        return [NO_ACTIVE_MESSAGE]
    width = max(len(e.identifier) for e in ordered)
    return [
        f"{e.identifier.ljust(width)}  {remaining_seconds(e.remaining_ms)}s"
        for e in ordered
    ]


def create_message(renewed: bool) -> str:
    return RENEWED_MESSAGE if renewed else CREATED_MESSAGE


def check_message(valid: bool) -> str:
    return VALID_MESSAGE if valid else INVALID_MESSAGE
