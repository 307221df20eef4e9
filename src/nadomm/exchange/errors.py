"""Exchange error types."""

from __future__ import annotations

from nadomm.constants import NO_OP_CANCEL_ERROR_CODE, RATE_LIMIT_ERROR_CODE


class ExchangeError(Exception):
    """Error returned by the exchange or raised while talking to it."""

    def __init__(self, message: str, code: int | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def is_no_op_cancel(self) -> bool:
        """Cancel rejected only because nothing was resting."""
        return self.code == NO_OP_CANCEL_ERROR_CODE

    def __str__(self) -> str:
        if self.code is not None:
            return f"[{self.code}] {self.message}"
        return self.message


class RateLimitError(ExchangeError):
    """Request throttled by the gateway."""


def error_from_response(
    message: str, code: int | None = None, status: int | None = None
) -> ExchangeError:
    """Build the matching error class for a failed gateway response."""
    if status == 429 or code == RATE_LIMIT_ERROR_CODE:
        return RateLimitError(message, code=code, status=status)
    return ExchangeError(message, code=code, status=status)
