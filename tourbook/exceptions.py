"""All exceptions."""


class BackendError(Exception):
    """Raised when the booking backend answers with an error envelope."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PackageNotFound(BackendError):
    """Raised when the backend has no bookable package for the identifiers."""


class PromoCodeError(Exception):
    """Raised when a promo code cannot be applied."""

    message = "Failed to apply promo code. Please try again."

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"{self.message} ({code!r})")


class InvalidPromoCode(PromoCodeError):
    """Raised when the backend does not know the promo code."""

    message = "Your coupon code is not valid."


class ExpiredPromoCode(PromoCodeError):
    """Raised when the promo code exists but can no longer be used."""

    message = "Your coupon code is no longer valid."


class EmptyCart(Exception):
    """Raised when checking out a cart with no items."""


class CheckoutValidationError(Exception):
    """Raised when customer details are incomplete or malformed."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        error_summary = "\n".join(
            f"  {field}: {message}" for field, message in errors.items()
        )
        super().__init__(f"Customer details are invalid:\n{error_summary}")
