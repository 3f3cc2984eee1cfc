"""Operator error hierarchy.

Every failure raised by the reconciliation engine derives from
``OperatorError``. Each error carries a category and a retry hint so the
kopf handlers can turn it into a ``kopf.TemporaryError`` or a
``kopf.PermanentError`` without inspecting the concrete type.
"""

from __future__ import annotations

import kopf

from .settings import RETRY_DELAY_SECONDS


class OperatorError(Exception):
    """Base error class for all operator-related exceptions."""

    category = "operator"
    retryable = True

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize operator error.

        Args:
            message: Human-readable error description
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause

    def as_kopf_error(self, delay: float = RETRY_DELAY_SECONDS) -> kopf.TemporaryError | kopf.PermanentError:
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=delay)
        return kopf.PermanentError(str(self))


class ValidationError(OperatorError):
    """Error in resource specification validation."""

    category = "validation"
    retryable = False

    def __init__(self, message: str, field: str | None = None):
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(message)
        self.field = field


class CredentialError(OperatorError):
    """Credentials are missing, unreadable or malformed."""

    category = "configuration"


class AuthenticationError(OperatorError):
    """The identity service rejected the credentials or could not be reached."""

    category = "authentication"


class UnsupportedConfigurationKindError(OperatorError):
    """A provider config reference names a kind the operator does not know."""

    category = "configuration"
    retryable = False

    def __init__(self, kind: str):
        super().__init__(f"unsupported provider config kind: {kind!r}")
        self.kind = kind


class ConfigurationNotFoundError(OperatorError):
    """The referenced ProviderConfig or ClusterProviderConfig does not exist."""

    category = "configuration"


class ReferenceResolutionError(OperatorError):
    """A reference to another managed resource cannot be resolved yet."""

    category = "reference"


class ProviderAPIError(OperatorError):
    """The provider API returned an error or could not be reached."""

    category = "external"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        service: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.service = service


class NotFoundError(ProviderAPIError):
    """The provider reports the resource as absent."""


class ImmutableFieldError(OperatorError):
    """An update would change a field that cannot change after creation."""

    category = "validation"
    retryable = False

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ReconcileError(OperatorError):
    """A lifecycle operation against the provider failed."""

    category = "reconcile"
    operation = "reconcile"

    def __init__(self, kind: str, cause: Exception):
        super().__init__(f"cannot {self.operation} {kind}: {cause}", cause=cause)
        self.kind = kind
        self.retryable = getattr(cause, "retryable", True)


class ObserveError(ReconcileError):
    operation = "observe"


class CreateError(ReconcileError):
    operation = "create"


class UpdateError(ReconcileError):
    operation = "update"


class DeleteError(ReconcileError):
    operation = "delete"
