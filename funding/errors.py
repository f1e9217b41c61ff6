class PaymentError(Exception):
    """Base class for failures surfaced to API callers as a structured payload."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaymentError):
    """Malformed, missing or out-of-range input, raised before any processor call."""

    status_code = 400


class NotFoundError(PaymentError):
    status_code = 404


class ConflictError(PaymentError):
    """Processor-confirmed state disagrees with the requested action."""

    status_code = 409


class UpstreamError(PaymentError):
    """The payment processor call itself failed."""

    status_code = 502
