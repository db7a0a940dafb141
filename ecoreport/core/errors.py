from __future__ import annotations


class AppError(Exception):
    """Per-request failure rendered as ``{"detail": <code>}``."""

    status_code = 500
    detail = "operation_failed"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class NotFound(AppError):
    status_code = 404
    detail = "not_found"


class ValidationFailure(AppError):
    status_code = 400
    detail = "validation_failed"


class InsufficientPoints(AppError):
    status_code = 402
    detail = "insufficient_points"


class InsufficientState(InsufficientPoints):
    # redeem-all before the user ever had a balance row
    detail = "no_reward_balance"


class InvalidTransition(AppError):
    status_code = 409
    detail = "invalid_status_transition"


class ExternalServiceFailure(AppError):
    status_code = 502
    detail = "external_service_failed"
