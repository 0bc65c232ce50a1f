"""Custom exceptions for shopdesk."""


class ShopdeskError(Exception):
    """Base exception for all shopdesk errors."""

    pass


class RequestFailedError(ShopdeskError):
    """Raised when the REST backend answers with a non-success status."""

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int | None = None,
        reason: str | None = None,
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.reason = reason
        msg = f"{method} {url} failed"
        if status_code is not None:
            msg = f"{msg} with status {status_code}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class PurchaseIncompleteError(RequestFailedError):
    """Raised when stock was decremented but the purchase line was not recorded."""

    def __init__(self, product_id: str, quantity: int, cause: RequestFailedError):
        self.product_id = product_id
        self.quantity = quantity
        self.cause = cause
        self.method = cause.method
        self.url = cause.url
        self.status_code = cause.status_code
        self.reason = cause.reason
        ShopdeskError.__init__(
            self,
            f"Stock of product {product_id} was reduced by {quantity} "
            f"but the purchase could not be recorded ({cause})",
        )


class NotFoundError(ShopdeskError):
    """Raised when a lookup by id or email yields nothing."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class InvalidCredentialsError(ShopdeskError):
    """Raised when the password does not match."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("Invalid credentials")


class AccountInactiveError(ShopdeskError):
    """Raised when an inactive account tries to log in."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User account is inactive: {email}")


class DuplicateEmailError(ShopdeskError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class ValidationFailedError(ShopdeskError):
    """Raised when input is missing a required field or exceeds available stock."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidSchemaVersionError(ShopdeskError):
    """Raised when the session snapshot has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported session schema version {found}. This tool supports version {supported}."
        )
