"""Models for django-quotes.

Provides:
- Quote: Priced proposal to a customer, owned by a tenant
- QuoteNumberSequence: Durable per-tenant counter for quote numbers
- QuoteTransition: Audit log of status changes

Write through services only:
- create_quote()
- update_quote()
- transition_quote()
- delete_quote()
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from .line_items import dumps_line_items, loads_line_items
from .states import QuoteStatus


class QuotesBaseModel(models.Model):
    """Base model with created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Quote(QuotesBaseModel):
    """
    A priced, time-bounded proposal sent to a customer.

    Monetary fields are integer minor currency units. The server recomputes
    them on every write; see django_quotes.pricing.

    Fields:
    - tenant_id: Tenant that owns the quote (numbering scope)
    - tenant_organization_id: The customer, immutable after creation
    - quote_number: Human-readable, unique and increasing per tenant
    - line_items_data: Stored JSON array; use the `line_items` property
    - billing_*: Point-in-time copy of the customer's billing details
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant_id = models.CharField(
        max_length=255,
        help_text="ID of the owning tenant (CharField for UUID support)",
    )
    quote_number = models.CharField(
        max_length=100,
        help_text="Human-readable number, e.g. QUO-ACME-1001",
    )
    status = models.CharField(
        max_length=20,
        choices=QuoteStatus.choices,
        default=QuoteStatus.DRAFT,
    )

    # Revision chain
    version = models.PositiveIntegerField(default=1)
    parent_quote = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='revisions',
        help_text="Prior version this quote revises",
    )

    # Money
    subtotal = models.BigIntegerField(default=0)
    tax = models.BigIntegerField(default=0)
    total = models.BigIntegerField(default=0)
    currency = models.CharField(max_length=3, default='USD')

    # Commercial links
    tenant_organization_id = models.CharField(
        max_length=255,
        help_text="ID of the customer organization",
    )
    deal_id = models.CharField(max_length=255, null=True, blank=True)
    product_plan_id = models.CharField(max_length=255, null=True, blank=True)
    converted_to_invoice_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Set once, when the quote is converted",
    )

    # Content
    line_items_data = models.TextField(default='[]')
    valid_until = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    # Billing snapshot
    billing_name = models.CharField(max_length=255, blank=True, default='')
    billing_email = models.CharField(max_length=255, null=True, blank=True)
    billing_address = models.TextField(null=True, blank=True)

    # Lifecycle
    sent_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = 'django_quotes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant_id', 'status'], name='quotes_tenant_status_idx'),
            models.Index(fields=['tenant_organization_id'], name='quotes_customer_idx'),
            models.Index(fields=['deal_id'], name='quotes_deal_idx'),
            models.Index(fields=['status', 'valid_until'], name='quotes_status_valid_until_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['tenant_id', 'quote_number'],
                name='quotes_unique_number_per_tenant',
            ),
            models.CheckConstraint(
                condition=Q(total=F('subtotal') + F('tax')),
                name='quotes_total_is_subtotal_plus_tax',
            ),
            models.CheckConstraint(
                condition=~Q(status='converted') | Q(converted_to_invoice_id__isnull=False),
                name='quotes_converted_has_invoice',
            ),
            models.CheckConstraint(
                condition=Q(version__gte=1),
                name='quotes_version_positive',
            ),
        ]

    def __str__(self):
        return f"{self.quote_number} ({self.status})"

    @property
    def line_items(self):
        """Decoded line items; empty list if the stored data is corrupted."""
        return loads_line_items(self.line_items_data, quote_id=self.pk)

    @line_items.setter
    def line_items(self, items):
        self.line_items_data = dumps_line_items(items)


class QuoteNumberSequence(QuotesBaseModel):
    """
    Per-tenant quote number counter.

    One row per tenant, incremented under select_for_update(). The counter
    only moves forward: deleting a quote never frees its number.
    """

    tenant_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="ID of the tenant this counter belongs to",
    )
    current_value = models.PositiveBigIntegerField(
        default=0,
        help_text="Last number handed out",
    )

    class Meta:
        app_label = 'django_quotes'

    def __str__(self):
        return f"quote numbers (tenant:{self.tenant_id}): {self.current_value}"


class QuoteTransition(models.Model):
    """
    Audit log of quote status changes.

    Records who changed the status, when, and through which event.
    """

    quote = models.ForeignKey(
        Quote,
        on_delete=models.CASCADE,
        related_name='transitions',
    )
    event = models.CharField(max_length=20)
    from_state = models.CharField(max_length=20)
    to_state = models.CharField(max_length=20)
    transitioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='quote_transitions',
    )
    transitioned_at = models.DateTimeField(auto_now_add=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        app_label = 'django_quotes'
        ordering = ['-transitioned_at']
        indexes = [
            models.Index(fields=['quote', '-transitioned_at'], name='quotes_transition_quote_idx'),
        ]

    def __str__(self):
        return f"{self.quote}: {self.from_state} -> {self.to_state}"
