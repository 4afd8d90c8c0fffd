# Generated manually for standalone django-quotes package

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "tenant_id",
                    models.CharField(
                        help_text="ID of the owning tenant (CharField for UUID support)",
                        max_length=255,
                    ),
                ),
                (
                    "quote_number",
                    models.CharField(
                        help_text="Human-readable number, e.g. QUO-ACME-1001",
                        max_length=100,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                            ("expired", "Expired"),
                            ("converted", "Converted"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=1)),
                ("subtotal", models.BigIntegerField(default=0)),
                ("tax", models.BigIntegerField(default=0)),
                ("total", models.BigIntegerField(default=0)),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "tenant_organization_id",
                    models.CharField(
                        help_text="ID of the customer organization",
                        max_length=255,
                    ),
                ),
                ("deal_id", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "product_plan_id",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "converted_to_invoice_id",
                    models.CharField(
                        blank=True,
                        help_text="Set once, when the quote is converted",
                        max_length=255,
                        null=True,
                    ),
                ),
                ("line_items_data", models.TextField(default="[]")),
                ("valid_until", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "billing_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "billing_email",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("billing_address", models.TextField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                (
                    "parent_quote",
                    models.ForeignKey(
                        blank=True,
                        help_text="Prior version this quote revises",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="revisions",
                        to="django_quotes.quote",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["tenant_id", "status"],
                        name="quotes_tenant_status_idx",
                    ),
                    models.Index(
                        fields=["tenant_organization_id"],
                        name="quotes_customer_idx",
                    ),
                    models.Index(
                        fields=["deal_id"],
                        name="quotes_deal_idx",
                    ),
                    models.Index(
                        fields=["status", "valid_until"],
                        name="quotes_status_valid_until_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenant_id", "quote_number"),
                        name="quotes_unique_number_per_tenant",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("total", models.F("subtotal") + models.F("tax"))
                        ),
                        name="quotes_total_is_subtotal_plus_tax",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("status", "converted"), _negated=True),
                            ("converted_to_invoice_id__isnull", False),
                            _connector="OR",
                        ),
                        name="quotes_converted_has_invoice",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("version__gte", 1)),
                        name="quotes_version_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuoteNumberSequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tenant_id",
                    models.CharField(
                        help_text="ID of the tenant this counter belongs to",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "current_value",
                    models.PositiveBigIntegerField(
                        default=0, help_text="Last number handed out"
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="QuoteTransition",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("event", models.CharField(max_length=20)),
                ("from_state", models.CharField(max_length=20)),
                ("to_state", models.CharField(max_length=20)),
                ("transitioned_at", models.DateTimeField(auto_now_add=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transitions",
                        to="django_quotes.quote",
                    ),
                ),
                (
                    "transitioned_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quote_transitions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-transitioned_at"],
                "indexes": [
                    models.Index(
                        fields=["quote", "-transitioned_at"],
                        name="quotes_transition_quote_idx",
                    ),
                ],
            },
        ),
    ]
