"""Read-side queries for quotes.

Every lookup is scoped to a tenant; a quote owned by another tenant is
reported as not found.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models.functions import Length
from django.utils import timezone

from .exceptions import InvalidField, NotFound, StorageError
from .models import Quote
from .states import QuoteStatus

logger = logging.getLogger(__name__)


def get_quote(tenant_id: str, quote_id, for_update: bool = False) -> Quote:
    """
    Fetch a single quote for a tenant.

    With for_update=True the row is locked until the surrounding
    transaction ends; call it inside transaction.atomic().

    Raises:
        NotFound: If the quote does not exist for this tenant
        StorageError: If the datastore fails
    """
    queryset = Quote.objects.select_for_update() if for_update else Quote.objects
    try:
        return queryset.get(tenant_id=str(tenant_id), pk=quote_id)
    except (Quote.DoesNotExist, ValidationError, ValueError):
        raise NotFound("quote", quote_id)
    except DatabaseError as e:
        logger.exception(f"Failed to load quote {quote_id}")
        raise StorageError(f"Failed to load quote: {e}") from e


def list_quotes(
    tenant_id: str,
    status: str = None,
    customer_id: str = None,
    deal_id: str = None,
) -> list[Quote]:
    """
    List a tenant's quotes, newest first.

    Args:
        tenant_id: Owning tenant
        status: Optional status filter
        customer_id: Optional customer (tenant organization) filter
        deal_id: Optional deal filter

    Raises:
        InvalidField: If status is not a known quote status
        StorageError: If the datastore fails
    """
    queryset = Quote.objects.filter(tenant_id=str(tenant_id))

    if status:
        if status not in QuoteStatus.values:
            raise InvalidField("status", f"Unknown quote status '{status}'")
        queryset = queryset.filter(status=status)
    if customer_id:
        queryset = queryset.filter(tenant_organization_id=str(customer_id))
    if deal_id:
        queryset = queryset.filter(deal_id=str(deal_id))

    try:
        # Numbers share a tenant prefix, so longer means larger.
        return list(queryset.order_by(
            '-created_at',
            Length('quote_number').desc(),
            '-quote_number',
        ))
    except DatabaseError as e:
        logger.exception(f"Failed to list quotes for tenant {tenant_id}")
        raise StorageError(f"Failed to list quotes: {e}") from e


def overdue_quotes(now=None, tenant_id: str = None):
    """Sent quotes whose valid_until has passed."""
    queryset = Quote.objects.filter(
        status=QuoteStatus.SENT,
        valid_until__isnull=False,
        valid_until__lt=now or timezone.now(),
    )
    if tenant_id:
        queryset = queryset.filter(tenant_id=str(tenant_id))
    return queryset.order_by('valid_until')
