"""Error types shared by the domain rules, the request guard and the routers.

Every error carries the ``message``, ``code`` and ``status`` that end up in the
JSON error envelope returned to the client.
"""

from typing import Any, Dict


class GameError(Exception):
    code: str = "INTERNAL_ERROR"
    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message: str = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "status": self.status}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(GameError):
    code = "INVALID_REQUEST"
    status = 400
    default_message = "Invalid request"


class InvalidRequestError(ValidationError):
    pass


class MissingCardIdError(ValidationError):
    code = "MISSING_CARD_ID"
    default_message = "Card ID is required"


class BatchLimitExceededError(ValidationError):
    code = "BATCH_LIMIT_EXCEEDED"
    default_message = "Too many clicks in one request"


class InsufficientEnergyError(GameError):
    code = "INSUFFICIENT_ENERGY"
    status = 400
    default_message = "Insufficient energy"


class InsufficientProgressError(GameError):
    code = "INSUFFICIENT_PROGRESS"
    status = 400
    default_message = "Card progress must be 100% to level up"


class MaxLevelReachedError(GameError):
    code = "MAX_LEVEL_REACHED"
    status = 400
    default_message = "Card is already at maximum level"


class NotFoundError(GameError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Not found"


class RateLimitExceededError(GameError):
    code = "RATE_LIMIT_EXCEEDED"
    status = 429
    default_message = "Too many requests. Please try again later."


class CooldownActiveError(GameError):
    code = "COOLDOWN_ACTIVE"
    status = 429
    default_message = "Please wait before making another request."


class MethodNotAllowedError(GameError):
    code = "METHOD_NOT_ALLOWED"
    status = 405
    default_message = "Method not allowed"


class InternalError(GameError):
    pass
