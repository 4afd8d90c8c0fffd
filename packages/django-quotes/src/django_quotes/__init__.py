"""Django Quotes - Quote lifecycle and line-item pricing.

Models:
    Quote: Priced proposal with line items, scoped to a tenant
    QuoteNumberSequence: Durable per-tenant quote number counter
    QuoteTransition: Audit log of status changes

Services (the only supported write path):
    create_quote: Validate, price, number and persist a draft quote
    update_quote: Edit a draft quote, repricing server-side
    transition_quote: Apply a lifecycle event (send, accept, reject, expire, convert)
    convert_quote: Link an accepted quote to its invoice
    delete_quote: Remove a draft or rejected quote
    expire_overdue_quotes: Expire sent quotes past their validity date
"""

__version__ = "0.1.0"

__all__ = [
    # Models
    "Quote",
    "QuoteNumberSequence",
    "QuoteTransition",
    # Value objects
    "LineItem",
    "QuoteStatus",
    "QuoteEvent",
    # Services
    "create_quote",
    "update_quote",
    "transition_quote",
    "convert_quote",
    "delete_quote",
    "expire_overdue_quotes",
    "next_quote_number",
]

_MODELS = ("Quote", "QuoteNumberSequence", "QuoteTransition")
_SERVICES = (
    "create_quote",
    "update_quote",
    "transition_quote",
    "convert_quote",
    "delete_quote",
    "expire_overdue_quotes",
)


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in _MODELS:
        from . import models
        return getattr(models, name)

    if name in _SERVICES:
        from . import services
        return getattr(services, name)

    if name == "next_quote_number":
        from .numbering import next_quote_number
        return next_quote_number

    if name == "LineItem":
        from .line_items import LineItem
        return LineItem

    if name in ("QuoteStatus", "QuoteEvent"):
        from . import states
        return getattr(states, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
