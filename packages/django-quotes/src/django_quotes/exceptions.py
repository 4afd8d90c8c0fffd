"""Custom exceptions for django-quotes.

Three families, each mapped to one HTTP status by the views:
- QuoteValidationError: bad caller input (400)
- NotFound: unknown tenant, customer, deal, plan or quote (404)
- QuoteStateError: business-rule violation for the quote's status (400)

StorageError wraps datastore failures (500) and is safe to retry.
"""


class QuoteError(Exception):
    """Base exception for quote errors."""
    pass


# =============================================================================
# Input validation
# =============================================================================

class QuoteValidationError(QuoteError):
    """Raised when caller input is invalid."""
    pass


class LineItemError(QuoteValidationError):
    """Raised when a single line item is invalid.

    `index` is zero-based; the message shows the one-based position.
    """

    code = "invalid_line_item"

    def __init__(self, detail: str, index: int = None):
        self.detail = detail
        self.index = index
        super().__init__(self._format())

    def _format(self) -> str:
        if self.index is None:
            return self.detail
        return f"Line item {self.index + 1}: {self.detail}"

    def at(self, index: int) -> "LineItemError":
        """Bind the error to a position in the submitted list."""
        self.index = index
        self.args = (self._format(),)
        return self


class MalformedLineItem(LineItemError):
    code = "malformed_line_item"


class EmptyDescription(LineItemError):
    code = "empty_description"


class InvalidQuantity(LineItemError):
    code = "invalid_quantity"


class InvalidUnitPrice(LineItemError):
    code = "invalid_unit_price"


class InvalidTotal(LineItemError):
    code = "invalid_total"


class TotalMismatch(LineItemError):
    code = "total_mismatch"


class MissingField(QuoteValidationError):
    """Raised when a required field is missing or empty."""

    def __init__(self, field: str, message: str = None):
        self.field = field
        super().__init__(message or f"'{field}' is required")


class InvalidField(QuoteValidationError):
    """Raised when a field has a bad value or cannot be changed."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


# =============================================================================
# References
# =============================================================================

class NotFound(QuoteError):
    """Raised when a referenced object does not exist for the tenant."""

    def __init__(self, kind: str, ref_id):
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"{kind.replace('_', ' ').capitalize()} not found: {ref_id}")


class TenantNotFound(NotFound):
    """Raised when the owning tenant does not exist."""

    def __init__(self, tenant_id):
        super().__init__("tenant", tenant_id)


# =============================================================================
# Lifecycle
# =============================================================================

class QuoteStateError(QuoteError):
    """Base exception for status rule violations."""
    pass


class InvalidStateForEdit(QuoteStateError):
    """Raised when editing a quote that is not a draft."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Only draft quotes can be updated (status is '{status}')")


class InvalidStateForDelete(QuoteStateError):
    """Raised when deleting a quote that is not draft or rejected."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(
            f"Can only delete draft or rejected quotes (status is '{status}')"
        )


class IllegalTransition(QuoteStateError):
    """Raised when an event is not allowed from the current status."""

    def __init__(self, from_state: str, event: str):
        self.from_state = from_state
        self.event = event
        super().__init__(f"Cannot apply '{event}' to a quote in status '{from_state}'")


# =============================================================================
# Infrastructure
# =============================================================================

class StorageError(QuoteError):
    """Raised when the datastore fails. Safe to retry."""
    pass


class DirectoryLoadError(QuoteError):
    """Raised when QUOTES_DIRECTORY cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load quote directory '{path}': {reason}")
