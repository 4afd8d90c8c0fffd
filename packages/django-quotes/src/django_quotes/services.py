"""Quote lifecycle services.

Main entry points for creating, editing, transitioning and deleting
quotes. Monetary fields are always recomputed here from quantity and unit
price; totals sent by callers are validated but never stored.

Provides:
- create_quote: Create a draft quote with a freshly allocated number
- update_quote: Edit a draft quote
- transition_quote: Apply a lifecycle event
- convert_quote: Link an accepted quote to its invoice
- delete_quote: Remove a draft or rejected quote
- expire_overdue_quotes: Expire sent quotes past valid_until
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .conf import get_directory, get_setting
from .exceptions import (
    InvalidField,
    MissingField,
    NotFound,
    StorageError,
    TenantNotFound,
)
from .line_items import MAX_AMOUNT, validate_line_items
from .models import Quote, QuoteTransition
from .numbering import allocate_quote_number
from .pricing import PricedQuote, recompute
from .selectors import get_quote, overdue_quotes
from .states import QuoteEvent, QuoteStatus, ensure_deletable, ensure_editable, get_transition

logger = logging.getLogger(__name__)

# Fields update_quote() accepts. Everything else is fixed at creation or
# owned by the lifecycle.
EDITABLE_FIELDS = frozenset({
    'line_items',
    'tax',
    'deal_id',
    'product_plan_id',
    'valid_until',
    'notes',
})


def create_quote(
    tenant_id: str,
    customer_id: str,
    line_items: Iterable,
    *,
    tax: Optional[int] = None,
    deal_id: Optional[str] = None,
    product_plan_id: Optional[str] = None,
    valid_until=None,
    notes: Optional[str] = None,
    currency: Optional[str] = None,
) -> Quote:
    """
    Create a draft quote.

    Validates every line item, recomputes pricing, snapshots the customer's
    billing details, checks optional deal/plan references against the tenant,
    allocates the next quote number and persists the quote.

    Args:
        tenant_id: Tenant that owns the quote
        customer_id: Customer (tenant organization) being quoted
        line_items: LineItems or mappings with description/quantity/unitPrice
        tax: Tax amount in minor units (defaults to 0)
        deal_id: Optional deal in the same tenant
        product_plan_id: Optional product plan in the same tenant
        valid_until: Optional datetime, date or ISO 8601 string
        notes: Optional free text
        currency: ISO code, fixed for the life of the quote

    Returns:
        The persisted draft Quote

    Raises:
        MissingField: If customer_id or line items are missing
        LineItemError: If a line item is invalid (bound to its index)
        InvalidField: If tax, currency or valid_until is malformed
        TenantNotFound / NotFound: If the tenant or a reference is unknown
        StorageError: If the datastore fails
    """
    if not customer_id:
        raise MissingField("tenantOrganizationId", "Customer organization ID is required")

    items = validate_line_items(line_items)
    priced = _price(items, clean_tax(tax))
    currency = _clean_currency(currency)
    valid_until = _clean_valid_until(valid_until)

    directory = get_directory()
    tenant = directory.get_tenant(str(tenant_id))
    if tenant is None:
        raise TenantNotFound(tenant_id)

    customer = directory.get_customer(tenant.id, str(customer_id))
    if customer is None:
        raise NotFound("customer", customer_id)

    _check_references(directory, tenant.id, deal_id=deal_id, product_plan_id=product_plan_id)

    quote = Quote(
        tenant_id=tenant.id,
        status=QuoteStatus.DRAFT,
        version=1,
        currency=currency,
        tenant_organization_id=str(customer.id),
        deal_id=deal_id or None,
        product_plan_id=product_plan_id or None,
        valid_until=valid_until,
        notes=notes or None,
        billing_name=customer.name,
        billing_email=customer.billing_email,
        billing_address=customer.billing_address,
    )
    _apply_pricing(quote, priced)

    try:
        with transaction.atomic():
            quote.quote_number = allocate_quote_number(tenant)
            quote.save()
    except DatabaseError as e:
        logger.exception(f"Failed to create quote for tenant {tenant.id}")
        raise StorageError(f"Failed to create quote: {e}") from e

    logger.info(
        f"Created quote {quote.quote_number} ({quote.pk}) for customer "
        f"{quote.tenant_organization_id}, total {quote.total} {quote.currency}"
    )
    return quote


def update_quote(tenant_id: str, quote_id, changes: Mapping) -> Quote:
    """
    Edit a draft quote.

    Line items, when given, are re-validated and repriced wholesale. A tax
    change alone reprices the stored line items so subtotal and total stay
    consistent. Both paths go through pricing.recompute().

    Args:
        tenant_id: Owning tenant
        quote_id: Quote to edit
        changes: Subset of EDITABLE_FIELDS (snake_case keys)

    Returns:
        The updated Quote

    Raises:
        NotFound: If the quote, deal or plan does not exist for the tenant
        InvalidStateForEdit: If the quote is not a draft
        InvalidField: If a field is not editable or has a bad value
        LineItemError / MissingField: If line items are invalid or missing
        StorageError: If the datastore fails
    """
    quote = get_quote(tenant_id, quote_id)
    ensure_editable(quote.status)

    not_editable = sorted(set(changes) - EDITABLE_FIELDS)
    if not_editable:
        raise InvalidField(not_editable[0], f"'{not_editable[0]}' cannot be updated")

    update_fields = ['updated_at']

    if 'line_items' in changes or 'tax' in changes:
        tax = clean_tax(changes['tax']) if 'tax' in changes else quote.tax
        if 'line_items' in changes:
            items = validate_line_items(changes['line_items'])
        else:
            items = quote.line_items
            if not items:
                raise MissingField(
                    "lineItems",
                    "Stored line items are unreadable; resubmit the line items",
                )
        _apply_pricing(quote, _price(items, tax))
        update_fields += ['line_items_data', 'subtotal', 'tax', 'total']

    references = {
        field: changes[field] or None
        for field in ('deal_id', 'product_plan_id')
        if field in changes
    }
    if references:
        _check_references(get_directory(), quote.tenant_id, **references)
        for field, value in references.items():
            setattr(quote, field, str(value) if value else None)
            update_fields.append(field)

    if 'valid_until' in changes:
        quote.valid_until = _clean_valid_until(changes['valid_until'])
        update_fields.append('valid_until')

    if 'notes' in changes:
        quote.notes = changes['notes'] or None
        update_fields.append('notes')

    try:
        quote.save(update_fields=update_fields)
    except DatabaseError as e:
        logger.exception(f"Failed to update quote {quote.pk}")
        raise StorageError(f"Failed to update quote: {e}") from e

    logger.info(f"Updated quote {quote.quote_number}: {', '.join(sorted(changes)) or 'no fields'}")
    return quote


def transition_quote(
    tenant_id: str,
    quote_id,
    event: str,
    *,
    invoice_id: Optional[str] = None,
    by_user=None,
    metadata: Optional[dict] = None,
) -> Quote:
    """
    Apply a lifecycle event to a quote.

    Args:
        tenant_id: Owning tenant
        quote_id: Quote to transition
        event: One of QuoteEvent (send, accept, reject, expire, convert)
        invoice_id: Required for convert, rejected otherwise
        by_user: Optional user recorded on the audit row
        metadata: Optional metadata for the audit row

    Returns:
        The updated Quote

    Raises:
        NotFound: If the quote does not exist for the tenant
        IllegalTransition: If the event is not allowed from the current status
        MissingField: If convert is requested without an invoice ID
        StorageError: If the datastore fails
    """
    try:
        with transaction.atomic():
            # Concurrent events on one quote apply one after the other.
            quote = get_quote(tenant_id, quote_id, for_update=True)
            return _apply_transition(
                quote,
                event,
                invoice_id=invoice_id,
                by_user=by_user,
                metadata=metadata,
            )
    except DatabaseError as e:
        logger.exception(f"Failed to transition quote {quote_id}")
        raise StorageError(f"Failed to update quote status: {e}") from e


def convert_quote(tenant_id: str, quote_id, invoice_id: str, *, by_user=None) -> Quote:
    """Convert an accepted quote, recording the invoice it became."""
    return transition_quote(
        tenant_id,
        quote_id,
        QuoteEvent.CONVERT,
        invoice_id=invoice_id,
        by_user=by_user,
    )


def delete_quote(tenant_id: str, quote_id) -> None:
    """
    Permanently delete a draft or rejected quote.

    The quote's number is not reused.

    Raises:
        NotFound: If the quote does not exist for the tenant
        InvalidStateForDelete: If the quote is not draft or rejected
        StorageError: If the datastore fails
    """
    try:
        with transaction.atomic():
            quote = get_quote(tenant_id, quote_id, for_update=True)
            ensure_deletable(quote.status)
            quote_number = quote.quote_number
            quote.delete()
    except DatabaseError as e:
        logger.exception(f"Failed to delete quote {quote_id}")
        raise StorageError(f"Failed to delete quote: {e}") from e

    logger.info(f"Deleted quote {quote_number} ({quote_id})")


def expire_overdue_quotes(now=None, tenant_id: Optional[str] = None) -> list[Quote]:
    """
    Expire every sent quote whose valid_until has passed.

    Each quote is re-read under a row lock so a quote accepted or rejected
    in the meantime is left alone.

    Returns:
        The quotes that were expired
    """
    now = now or timezone.now()

    try:
        candidate_ids = list(overdue_quotes(now, tenant_id).values_list('pk', flat=True))
    except DatabaseError as e:
        logger.exception("Failed to find overdue quotes")
        raise StorageError(f"Failed to find overdue quotes: {e}") from e

    expired = []
    for quote_id in candidate_ids:
        try:
            with transaction.atomic():
                quote = Quote.objects.select_for_update().get(pk=quote_id)
                if quote.status != QuoteStatus.SENT:
                    continue
                expired.append(_apply_transition(
                    quote,
                    QuoteEvent.EXPIRE,
                    now=now,
                    metadata={'valid_until': quote.valid_until.isoformat()},
                ))
        except Quote.DoesNotExist:
            continue
        except DatabaseError as e:
            logger.exception(f"Failed to expire quote {quote_id}")
            raise StorageError(f"Failed to expire quote: {e}") from e

    if expired:
        logger.info(f"Expired {len(expired)} overdue quote(s)")
    return expired


# =============================================================================
# Helpers
# =============================================================================

def clean_tax(value) -> int:
    """
    Normalize a tax amount to integer minor units.

    Tax is opaque to the engine; it only has to be a whole, non-negative
    number. None means no tax.
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidField("tax", "Tax must be a number of minor currency units")
    try:
        decimal_value = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    except ArithmeticError:
        raise InvalidField("tax", "Tax must be a finite number")
    if not decimal_value.is_finite() or decimal_value != decimal_value.to_integral_value():
        raise InvalidField("tax", "Tax must be a whole number of minor currency units")
    if decimal_value < 0:
        raise InvalidField("tax", "Tax must be non-negative")
    if decimal_value > MAX_AMOUNT:
        raise InvalidField("tax", "Tax exceeds the maximum supported amount")
    return int(decimal_value)


def _price(items, tax: int) -> PricedQuote:
    """Recompute pricing and check the totals fit the monetary columns."""
    priced = recompute(items, tax)
    if priced.total > MAX_AMOUNT:
        raise InvalidField("total", "Quote total exceeds the maximum supported amount")
    return priced


def _apply_pricing(quote: Quote, priced: PricedQuote) -> None:
    quote.line_items = priced.line_items
    quote.subtotal = priced.subtotal
    quote.tax = priced.tax
    quote.total = priced.total


def _apply_transition(
    quote: Quote,
    event: str,
    *,
    invoice_id: Optional[str] = None,
    by_user=None,
    metadata: Optional[dict] = None,
    now=None,
) -> Quote:
    """Move a loaded quote through one transition and record the audit row."""
    rule = get_transition(quote.status, event)

    if rule.event == QuoteEvent.CONVERT:
        if not invoice_id:
            raise MissingField("invoiceId", "An invoice ID is required to convert a quote")
    elif invoice_id:
        raise InvalidField("invoiceId", f"'{rule.event}' does not take an invoice ID")

    from_state = str(quote.status)
    quote.status = rule.to_state
    update_fields = ['status', 'updated_at']

    if rule.timestamp_field:
        setattr(quote, rule.timestamp_field, now or timezone.now())
        update_fields.append(rule.timestamp_field)

    if rule.event == QuoteEvent.CONVERT:
        quote.converted_to_invoice_id = str(invoice_id)
        update_fields.append('converted_to_invoice_id')

    try:
        with transaction.atomic():
            quote.save(update_fields=update_fields)
            QuoteTransition.objects.create(
                quote=quote,
                event=rule.event,
                from_state=from_state,
                to_state=rule.to_state,
                transitioned_by=by_user,
                metadata=metadata or {},
            )
    except DatabaseError as e:
        logger.exception(f"Failed to apply '{rule.event}' to quote {quote.pk}")
        raise StorageError(f"Failed to update quote status: {e}") from e

    logger.info(f"Quote {quote.quote_number}: {from_state} -> {rule.to_state} ({rule.event})")
    return quote


def _check_references(directory, tenant_id: str, deal_id=None, product_plan_id=None) -> None:
    """Raise NotFound for a deal or plan that is not in the tenant."""
    if deal_id and not directory.deal_exists(tenant_id, str(deal_id)):
        raise NotFound("deal", deal_id)
    if product_plan_id and not directory.product_plan_exists(tenant_id, str(product_plan_id)):
        raise NotFound("product_plan", product_plan_id)


def _clean_currency(value: Optional[str]) -> str:
    currency = value or get_setting('DEFAULT_CURRENCY')
    if not isinstance(currency, str):
        raise InvalidField("currency", "Currency must be a three-letter code")
    currency = currency.upper()
    if len(currency) != 3 or not currency.isalpha():
        raise InvalidField("currency", f"'{value}' is not a three-letter currency code")
    return currency


def _clean_valid_until(value):
    """Accept None, a datetime, a date or an ISO 8601 string."""
    if value in (None, ''):
        return None

    if isinstance(value, str):
        try:
            parsed = parse_datetime(value) or parse_date(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidField("validUntil", f"'{value}' is not a valid ISO 8601 date")
        value = parsed

    if isinstance(value, datetime):
        if timezone.is_naive(value):
            value = timezone.make_aware(value)
        return value
    if isinstance(value, date):
        return timezone.make_aware(datetime.combine(value, time.min))

    raise InvalidField("validUntil", "validUntil must be a date or datetime")
