"""Per-route contact dispatcher.

Sequences one contact request: identity resolution, rate check, payload
validation, notification, response. The rate check runs before the body is
read so throttled callers never pay decode cost, and the limiter is released
before the notifier performs any network I/O.
"""

from __future__ import annotations

import json
import logging

from fastapi import Request, status
from pydantic import ValidationError

from app.adapters.notifier.base import AbstractNotifier
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.client_identity import resolve_client_identity
from app.core.errors import NotifierAppError, RateLimitAppError, ValidationAppError
from app.schemas.contact import ContactAccepted, ContactSubmission
from app.services.route_table import RouteBinding

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
INVALID_BODY_MESSAGE = "Invalid request body. Expected JSON with name, email, and message."
MISSING_FIELDS_MESSAGE = "All fields (name, email, message) are required."
DELIVERY_FAILED_MESSAGE = "Failed to send message. Please try again later."

_REQUIRED_FIELDS = ("name", "email", "message")

# Pydantic error types that mean "absent or empty" rather than "wrong shape"
_MISSING_ERROR_TYPES = frozenset({"missing", "string_too_short"})


def _decode_submission(body: bytes) -> ContactSubmission:
    """Decode and validate a raw JSON body.

    Raises:
        ValidationAppError: On malformed JSON, a non-object body, wrong field
            types or an empty/missing required field.
    """

    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise ValidationAppError(code="invalid_body", message=INVALID_BODY_MESSAGE) from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(code="invalid_body", message=INVALID_BODY_MESSAGE)

    try:
        return ContactSubmission.model_validate(payload)
    except ValidationError as exc:
        errors = [err for err in exc.errors() if err["loc"]]
        failed = sorted({str(err["loc"][0]) for err in errors})
        malformed = [err for err in errors if err["type"] not in _MISSING_ERROR_TYPES]
        missing = [field for field in failed if field in _REQUIRED_FIELDS]
        if missing and not malformed:
            raise ValidationAppError(
                code="missing_fields",
                message=MISSING_FIELDS_MESSAGE,
                details={"context": {"fields": missing}},
            ) from exc
        raise ValidationAppError(
            code="invalid_body",
            message=INVALID_BODY_MESSAGE,
            details={"context": {"fields": failed}},
        ) from exc


class ContactDispatcher:
    """Handle contact submissions for a single route.

    Attributes:
        route: Immutable binding (path, destination, window).
    """

    def __init__(
        self,
        route: RouteBinding,
        *,
        limiter: AbstractRateLimiter,
        notifier: AbstractNotifier,
        trust_proxy_headers: bool = True,
    ) -> None:
        self.route = route
        self._limiter = limiter
        self._notifier = notifier
        self._trust_proxy_headers = trust_proxy_headers

    def _log_outcome(
        self,
        level: int,
        event: str,
        request: Request,
        identity: str,
        status_code: int,
        **extra: object,
    ) -> None:
        logger.log(
            level,
            event,
            extra={
                "status_code": status_code,
                "method": request.method,
                "path": self.route.path,
                "client_identity": identity,
                **extra,
            },
        )

    async def handle(self, request: Request) -> ContactAccepted:
        """Process one submission.

        Returns:
            ContactAccepted once the notifier has delivered the message.

        Raises:
            RateLimitAppError: Caller is still within the route's window.
            ValidationAppError: Body is malformed or a required field is empty.
            NotifierAppError: Delivery to the chat provider failed.
        """
        identity = resolve_client_identity(
            request, trust_proxy_headers=self._trust_proxy_headers
        )

        decision = self._limiter.check(identity, self.route.path, self.route.window_seconds)
        if not decision.allowed:
            self._log_outcome(
                logging.WARNING,
                "rate_limit.exceeded",
                request,
                identity,
                status.HTTP_429_TOO_MANY_REQUESTS,
                retry_after_s=decision.retry_after_seconds,
                window_s=self.route.window_seconds,
            )
            raise RateLimitAppError(
                code="rate_limited",
                message=RATE_LIMITED_MESSAGE,
                details={"retry_after": decision.retry_after_seconds or 1},
            )

        try:
            submission = _decode_submission(await request.body())
        except ValidationAppError as exc:
            self._log_outcome(
                logging.INFO,
                "contact.rejected",
                request,
                identity,
                status.HTTP_400_BAD_REQUEST,
                error_code=exc.code,
            )
            raise

        try:
            await self._notifier.send(
                self.route.destination_token,
                self.route.destination_channel,
                name=submission.name,
                email=submission.email,
                message=submission.message,
                source=submission.source,
            )
        except NotifierAppError as exc:
            self._log_outcome(
                logging.ERROR,
                "contact.delivery_failed",
                request,
                identity,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code=exc.code,
                error_msg=exc.message,
            )
            raise NotifierAppError(
                code=exc.code,
                message=DELIVERY_FAILED_MESSAGE,
            ) from exc

        self._log_outcome(
            logging.INFO,
            "contact.delivered",
            request,
            identity,
            status.HTTP_200_OK,
        )
        return ContactAccepted()
