"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (identity provider, catalog, LLM)
is misconfigured or unreachable so callers can report a user-facing message.
Authorization errors come out of the CIBA flow and end up as the protected
tool's result; CartRequestError is mapped to a 4xx JSON body by the API layer.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. Auth0, catalog API) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthorizationError(Exception):
    """Raised when an asynchronous authorization request fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AccessDeniedError(AuthorizationError):
    """The user rejected the authorization request."""


class AuthorizationTimeoutError(AuthorizationError):
    """The user did not answer the authorization request in time."""


class CheckoutError(Exception):
    """Raised by the checkout tool when the shop API rejects an order."""


class CartRequestError(Exception):
    """Invalid add-to-cart / get-cart request; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
