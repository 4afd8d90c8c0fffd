"""Quote number allocation.

Numbers look like QUO-ACME-1001: prefix, tenant slug upper-cased, then a
per-tenant counter starting at QUOTES_NUMBER_START. The counter is a
database row locked with select_for_update(), so concurrent requests for
the same tenant are serialized by the datastore, never by process memory.
"""

import logging

from django.db import DatabaseError, IntegrityError, transaction

from .conf import get_directory, get_setting
from .directory import TenantRef
from .exceptions import StorageError, TenantNotFound
from .models import QuoteNumberSequence

logger = logging.getLogger(__name__)


def format_quote_number(slug: str, value: int) -> str:
    """Format a counter value, e.g. ('acme', 1001) -> 'QUO-ACME-1001'."""
    prefix = get_setting('NUMBER_PREFIX')
    return f"{prefix}-{slug.upper()}-{value}"


def next_quote_number(tenant_id: str) -> str:
    """
    Get the next quote number for a tenant atomically.

    Raises:
        TenantNotFound: If the directory does not know the tenant
        StorageError: If the counter cannot be updated
    """
    tenant = get_directory().get_tenant(str(tenant_id))
    if tenant is None:
        raise TenantNotFound(tenant_id)
    return allocate_quote_number(tenant)


def allocate_quote_number(tenant: TenantRef) -> str:
    """
    Increment the tenant's counter and return the formatted number.

    Runs in its own atomic block (a savepoint when called inside a larger
    transaction). If two requests race to create the tenant's first counter
    row, the loser hits the unique constraint and retries against the
    winner's row.
    """
    max_attempts = get_setting('NUMBER_MAX_ATTEMPTS')

    for attempt in range(1, max_attempts + 1):
        try:
            with transaction.atomic():
                sequence = _lock_sequence(tenant.id)
                sequence.current_value += 1
                sequence.save(update_fields=['current_value', 'updated_at'])
                return format_quote_number(tenant.slug, sequence.current_value)
        except IntegrityError:
            logger.warning(
                f"Quote number counter conflict for tenant {tenant.id} "
                f"(attempt {attempt}/{max_attempts})"
            )
        except DatabaseError as e:
            logger.exception(f"Failed to allocate quote number for tenant {tenant.id}")
            raise StorageError(f"Failed to allocate quote number: {e}") from e

    raise StorageError(
        f"Could not allocate a quote number for tenant {tenant.id} "
        f"after {max_attempts} attempts"
    )


def _lock_sequence(tenant_id: str) -> QuoteNumberSequence:
    """Return the tenant's counter row, locked, creating it on first use."""
    try:
        return QuoteNumberSequence.objects.select_for_update().get(tenant_id=tenant_id)
    except QuoteNumberSequence.DoesNotExist:
        sequence = QuoteNumberSequence.objects.create(
            tenant_id=tenant_id,
            current_value=get_setting('NUMBER_START') - 1,
        )
        return QuoteNumberSequence.objects.select_for_update().get(pk=sequence.pk)
