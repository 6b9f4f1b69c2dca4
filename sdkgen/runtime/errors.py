"""Errors raised by generated clients.

Non-2xx responses are classified by status code; network failures
(``httpx.RequestError``) are not wrapped and reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class MissingApiKeyError(RuntimeError):
    """No API key in the client config or the environment."""


class ApiError(Exception):
    """A request completed with a failure status."""

    status_code: int | None = None
    default_message = "An unexpected error occurred. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        response_body: Any | None = None,
    ) -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message or self.default_message
        self.response_body = response_body
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.status_code:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class BadRequestError(ApiError):
    status_code = 400
    default_message = "The request was invalid or malformed."


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required or session expired."


class PaymentRequiredError(ApiError):
    status_code = 402
    default_message = "Payment required - please check your account credits."


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "You do not have permission to access this resource."


class NotFoundError(ApiError):
    status_code = 404
    default_message = "The requested resource was not found."


class RequestTimeoutError(ApiError):
    status_code = 408
    default_message = "Request timeout. Please try again."


class UnprocessableEntityError(ApiError):
    status_code = 422
    default_message = "Unprocessable entity - validation failed."


class RateLimitError(ApiError):
    status_code = 429
    default_message = "Too many requests - please slow down or check quota limits."


class ServerError(ApiError):
    status_code = 500
    default_message = "Server error. Please try again later."


class InternalServerError(ServerError):
    status_code = 500
    default_message = "Internal server error. Please try again later."


class BadGatewayError(ServerError):
    status_code = 502
    default_message = "Bad gateway. Try again later."


class ServiceUnavailableError(ServerError):
    status_code = 503
    default_message = "Service unavailable. Please try again later."


class GatewayTimeoutError(ServerError):
    status_code = 504
    default_message = "Gateway timeout. Please try again later."


class UnexpectedError(ApiError):
    pass


STATUS_ERRORS: dict[int, type[ApiError]] = {
    cls.status_code: cls
    for cls in (
        BadRequestError,
        AuthenticationError,
        PaymentRequiredError,
        ForbiddenError,
        NotFoundError,
        RequestTimeoutError,
        UnprocessableEntityError,
        RateLimitError,
        InternalServerError,
        BadGatewayError,
        ServiceUnavailableError,
        GatewayTimeoutError,
    )
}


def error_for_status(
    status_code: int,
    message: str | None = None,
    response_body: Any | None = None,
) -> ApiError:
    """Build the error instance for a failure status."""
    cls = STATUS_ERRORS.get(status_code)
    if cls is None:
        cls = ServerError if 500 <= status_code < 600 else UnexpectedError
    return cls(message, status_code=status_code, response_body=response_body)
