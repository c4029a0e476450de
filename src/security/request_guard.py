"""Throttling and payload checks run in front of every mutating endpoint.

Order is fixed: rate limit, cooldown, payload validation, batch size. The
guard is built once by the application factory and shared by all routes, so
counters and cooldowns are per client identifier across endpoints while each
endpoint compares them against its own SecurityConfig.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict

from fastapi import Request
from pydantic import BaseModel

from src.exceptions import (
    BatchLimitExceededError,
    CooldownActiveError,
    InvalidRequestError,
    MissingCardIdError,
    RateLimitExceededError,
)
from src.models.dc_models import ProgressRequestModel
from src.security.rate_limit import InMemoryRateLimiter, RateLimiter

ANONYMOUS_USER = "anonymous"
UNKNOWN_IP = "unknown"


class SecurityConfig(BaseModel):
    max_requests_per_minute: int = 60
    max_batch_clicks: int = 10
    cooldown_period_ms: int = 100


DEFAULT_SECURITY_CONFIG = SecurityConfig()
BATCH_SECURITY_CONFIG = SecurityConfig(max_requests_per_minute=120, cooldown_period_ms=50)


class CooldownTracker:
    """Last allowed action per client identifier."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock: Callable[[], float] = clock
        self.cooldowns: Dict[str, float] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str, cooldown_period_ms: int) -> bool:
        """Allow the action if the cooldown elapsed, stamping now as the last action

        Args:
            identifier (str): Client identifier (user:ip)
            cooldown_period_ms (int): Minimum gap between two actions

        Returns:
            bool: True if the action is allowed
        """
        now = self.clock()
        with self._lock:
            last_action = self.cooldowns.get(identifier)
            if last_action is None or (now - last_action) * 1000 > cooldown_period_ms:
                self.cooldowns[identifier] = now
                return True
            return False

    def sweep(self, max_cooldown_ms: int) -> int:
        now = self.clock()
        with self._lock:
            expired = [
                identifier
                for identifier, last_action in self.cooldowns.items()
                if (now - last_action) * 1000 > max_cooldown_ms
            ]
            for identifier in expired:
                del self.cooldowns[identifier]
        return len(expired)


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def get_client_identifier(request: Request) -> str:
    user_id = request.headers.get("x-user-id") or ANONYMOUS_USER
    return f"{user_id}:{get_client_ip(request)}"


def validate_request_body(body: Any) -> ProgressRequestModel:
    """Validate a decoded JSON body carrying cardId and an optional clicks

    Raises:
        InvalidRequestError: Body is not an object, cardId is not a string or clicks is not a positive integer
        MissingCardIdError: cardId is absent or blank
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body is required")

    card_id = body.get("cardId")
    if card_id is None:
        raise MissingCardIdError()
    if not isinstance(card_id, str):
        raise InvalidRequestError("Valid cardId is required")
    if card_id.strip() == "":
        raise MissingCardIdError()

    clicks = body.get("clicks", 1)
    if isinstance(clicks, bool) or not isinstance(clicks, int) or clicks < 1:
        raise InvalidRequestError("Clicks must be a positive integer")

    return ProgressRequestModel(card_id=card_id, clicks=clicks)


def validate_batch_clicks(clicks: int, config: SecurityConfig) -> int:
    if not 1 <= clicks <= config.max_batch_clicks:
        raise BatchLimitExceededError(
            f"Maximum {config.max_batch_clicks} clicks allowed per request"
        )
    return clicks


class RequestGuard:
    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        cooldown_tracker: CooldownTracker | None = None,
    ):
        self.rate_limiter: RateLimiter = rate_limiter or InMemoryRateLimiter()
        self.cooldown_tracker: CooldownTracker = cooldown_tracker or CooldownTracker()
        self.max_cooldown_ms: int = 0

    async def check_throttle(self, identifier: str, config: SecurityConfig) -> None:
        """Rate limit first, then cooldown

        Raises:
            RateLimitExceededError: Too many requests in the current window
            CooldownActiveError: The previous action is too recent
        """
        self.max_cooldown_ms = max(self.max_cooldown_ms, config.cooldown_period_ms)

        if not await self.rate_limiter.check(identifier, config.max_requests_per_minute):
            logging.warning(f"Rate limit exceeded: {identifier}")
            raise RateLimitExceededError()

        if not self.cooldown_tracker.check(identifier, config.cooldown_period_ms):
            raise CooldownActiveError()

    async def guard(
        self, request: Request, config: SecurityConfig, batch: bool = False
    ) -> ProgressRequestModel:
        """Run every check for a mutating request and return its validated payload

        Args:
            request (Request): Incoming request
            config (SecurityConfig): Limits of the endpoint
            batch (bool): Also enforce the batch size limit

        Returns:
            ProgressRequestModel: cardId and clicks of the request
        """
        await self.check_throttle(get_client_identifier(request), config)

        try:
            body = await request.json()
        except ValueError:
            raise InvalidRequestError("Request body is required")

        payload = validate_request_body(body)
        if batch:
            validate_batch_clicks(payload.clicks, config)
        return payload

    async def sweep(self) -> None:
        """Forget identifiers whose window and cooldown have both lapsed"""
        removed_counts = await self.rate_limiter.sweep()
        removed_cooldowns = self.cooldown_tracker.sweep(self.max_cooldown_ms)
        logging.debug(
            f"Guard sweep removed {removed_counts} counters and {removed_cooldowns} cooldowns"
        )
