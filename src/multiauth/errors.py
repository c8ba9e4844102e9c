"""Errors raised by the presentation layer.

The registry itself never raises; these only describe malformed user input.
"""


class MultiAuthError(Exception):
    """Base class for all MultiAuth errors."""


class InvalidPasscodeInput(MultiAuthError):
    """User-entered passcode is empty or not numeric.

    The message is safe to show to the user as-is.
    """
