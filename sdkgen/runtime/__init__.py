"""Runtime support imported by generated clients."""

from .core import (
    BaseClient,
    ByteStream,
    ClientConfig,
    StreamEvent,
    compact,
    parse_streaming_response,
    query_value,
)
from .errors import (
    ApiError,
    AuthenticationError,
    BadGatewayError,
    BadRequestError,
    ForbiddenError,
    GatewayTimeoutError,
    InternalServerError,
    MissingApiKeyError,
    NotFoundError,
    PaymentRequiredError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    ServiceUnavailableError,
    UnexpectedError,
    UnprocessableEntityError,
    error_for_status,
)

__all__ = [
    "ApiError",
    "AuthenticationError",
    "BadGatewayError",
    "BadRequestError",
    "BaseClient",
    "ByteStream",
    "ClientConfig",
    "ForbiddenError",
    "GatewayTimeoutError",
    "InternalServerError",
    "MissingApiKeyError",
    "NotFoundError",
    "PaymentRequiredError",
    "RateLimitError",
    "RequestTimeoutError",
    "ServerError",
    "ServiceUnavailableError",
    "StreamEvent",
    "UnexpectedError",
    "UnprocessableEntityError",
    "compact",
    "error_for_status",
    "parse_streaming_response",
    "query_value",
]
