"""Error taxonomy for the payments backend.

Every error carries the HTTP status it maps to, a user-facing message and an
optional ``details`` string holding the underlying cause for diagnostics.
The app factory renders them as ``{"error": message, "details": details}``.
"""

from __future__ import annotations


class PaymentsError(Exception):
    """Base class for errors rendered as JSON error responses."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PaymentsError):
    """Missing or invalid input."""

    status_code = 400
    default_message = "Invalid request"


class InvalidAmountError(ValidationError):
    default_message = "Invalid amount"


class MissingDestinationError(ValidationError):
    default_message = "Connect account ID required"


class MissingFieldError(ValidationError):
    """A required request field is absent."""


class UpstreamNotReadyError(PaymentsError):
    """An upstream resource exists but cannot be used yet."""

    status_code = 400
    default_message = "Upstream resource not ready"


class DestinationNotReadyError(UpstreamNotReadyError):
    default_message = (
        "Connect account is not ready to receive payments. "
        "Please complete the onboarding process."
    )


class NotFoundError(PaymentsError):
    status_code = 404
    default_message = "Not found"


class BarNotFoundError(NotFoundError):
    default_message = "Bar not found"


class UpstreamFailureError(PaymentsError):
    """Stripe or Firestore rejected the call, or the network failed."""

    status_code = 500
    default_message = "Upstream request failed"


class PaymentIntentCreationFailedError(UpstreamFailureError):
    default_message = "Failed to create payment intent"


class ConfigurationError(PaymentsError):
    """A required deployment secret or setting is absent."""

    status_code = 500
    default_message = "Server configuration error"


class PaymentIntentNotFoundError(NotFoundError):
    default_message = "Payment intent not found"


class PaymentNotCompletedError(ValidationError):
    """The PaymentIntent exists but has not succeeded."""

    default_message = "Payment not completed"

    def to_dict(self) -> dict[str, str]:
        return {"success": False, **super().to_dict()}


class PaymentConfirmationFailedError(UpstreamFailureError):
    default_message = "Failed to confirm payment"
