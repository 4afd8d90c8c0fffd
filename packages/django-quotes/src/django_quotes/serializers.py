"""Wire representation of quotes (camelCase keys, integer money)."""

from .models import Quote
from .states import get_allowed_events


def _iso(value):
    return value.isoformat() if value else None


def quote_to_dict(quote: Quote) -> dict:
    """Serialize a quote with its line items decoded."""
    return {
        "id": str(quote.pk),
        "quoteNumber": quote.quote_number,
        "status": str(quote.status),
        "version": quote.version,
        "parentQuoteId": str(quote.parent_quote_id) if quote.parent_quote_id else None,
        "tenantOrganizationId": quote.tenant_organization_id,
        "dealId": quote.deal_id,
        "productPlanId": quote.product_plan_id,
        "convertedToInvoiceId": quote.converted_to_invoice_id,
        "lineItems": [item.to_dict() for item in quote.line_items],
        "subtotal": quote.subtotal,
        "tax": quote.tax,
        "total": quote.total,
        "currency": quote.currency,
        "validUntil": _iso(quote.valid_until),
        "notes": quote.notes,
        "billingName": quote.billing_name,
        "billingEmail": quote.billing_email,
        "billingAddress": quote.billing_address,
        "createdAt": _iso(quote.created_at),
        "updatedAt": _iso(quote.updated_at),
        "sentAt": _iso(quote.sent_at),
        "acceptedAt": _iso(quote.accepted_at),
        "rejectedAt": _iso(quote.rejected_at),
        "allowedEvents": get_allowed_events(quote.status),
    }
