"""Tests for per-tenant quote number allocation."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from unittest import mock

import pytest
from django.db import IntegrityError, OperationalError, connection
from django.test import override_settings

from django_quotes.directory import TenantRef
from django_quotes.exceptions import StorageError, TenantNotFound
from django_quotes.models import Quote, QuoteNumberSequence
from django_quotes.numbering import allocate_quote_number, format_quote_number, next_quote_number
from django_quotes.services import create_quote


class TestFormatQuoteNumber:

    def test_upper_cases_slug(self):
        assert format_quote_number("acme", 1001) == "QUO-ACME-1001"

    @override_settings(QUOTES_NUMBER_PREFIX="EST")
    def test_prefix_is_configurable(self):
        assert format_quote_number("acme", 7) == "EST-ACME-7"


@pytest.mark.django_db
class TestNextQuoteNumber:
    """Test suite for next_quote_number."""

    def test_first_number_is_1001(self, tenant):
        assert next_quote_number(tenant.pk) == "QUO-ACME-1001"

    def test_numbers_increase(self, tenant):
        numbers = [next_quote_number(tenant.pk) for _ in range(3)]

        assert numbers == ["QUO-ACME-1001", "QUO-ACME-1002", "QUO-ACME-1003"]

    def test_counter_is_durable(self, tenant):
        next_quote_number(tenant.pk)
        next_quote_number(tenant.pk)

        assert QuoteNumberSequence.objects.get(tenant_id=tenant.pk).current_value == 1002

    def test_tenants_have_independent_counters(self, tenant, other_tenant):
        next_quote_number(tenant.pk)
        next_quote_number(tenant.pk)

        assert next_quote_number(other_tenant.pk) == "QUO-GLOBEX-1001"
        assert next_quote_number(tenant.pk) == "QUO-ACME-1003"

    @override_settings(QUOTES_NUMBER_START=1)
    def test_start_is_configurable(self, tenant):
        assert next_quote_number(tenant.pk) == "QUO-ACME-1"

    def test_unknown_tenant_raises(self, db):
        with pytest.raises(TenantNotFound) as exc_info:
            next_quote_number("no-such-tenant")

        assert exc_info.value.ref_id == "no-such-tenant"
        assert str(exc_info.value) == "Tenant not found: no-such-tenant"
        assert not QuoteNumberSequence.objects.exists()


@pytest.mark.django_db
class TestAllocateQuoteNumberFailures:

    tenant = TenantRef(id="t-race", slug="race")

    def test_retries_after_counter_row_conflict(self, caplog):
        """Losing the race to create the counter row retries against the winner's row."""
        real_create = QuoteNumberSequence.objects.create
        calls = []

        def create_after_conflict(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise IntegrityError("UNIQUE constraint failed")
            return real_create(**kwargs)

        with mock.patch.object(
            QuoteNumberSequence.objects, "create", side_effect=create_after_conflict
        ):
            assert allocate_quote_number(self.tenant) == "QUO-RACE-1001"

        assert len(calls) == 2
        assert "counter conflict for tenant t-race (attempt 1/3)" in caplog.text

    @override_settings(QUOTES_NUMBER_MAX_ATTEMPTS=2)
    def test_gives_up_after_max_attempts(self):
        with mock.patch.object(
            QuoteNumberSequence.objects,
            "select_for_update",
            side_effect=IntegrityError("UNIQUE constraint failed"),
        ):
            with pytest.raises(StorageError) as exc_info:
                allocate_quote_number(self.tenant)

        assert "after 2 attempts" in str(exc_info.value)

    def test_database_error_becomes_storage_error(self):
        with mock.patch.object(
            QuoteNumberSequence.objects,
            "select_for_update",
            side_effect=OperationalError("database is locked"),
        ):
            with pytest.raises(StorageError) as exc_info:
                allocate_quote_number(self.tenant)

        assert "database is locked" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.django_db(transaction=True)
class TestConcurrentAllocation:
    """Verify quote numbers stay unique under concurrent access."""

    def test_concurrent_allocations_are_unique(self, tenant):
        def allocate():
            try:
                return next_quote_number(tenant.pk)
            except Exception as e:
                return e
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=5) as executor:
            futures = [executor.submit(allocate) for _ in range(20)]
            results = [future.result() for future in as_completed(futures)]

        errors = [r for r in results if isinstance(r, Exception)]
        assert errors == [], f"Errors during concurrent allocation: {errors}"
        assert sorted(results) == sorted(f"QUO-ACME-{n}" for n in range(1001, 1021))
        assert QuoteNumberSequence.objects.get(tenant_id=tenant.pk).current_value == 1020

    def test_concurrent_creates_persist_unique_numbers(self, tenant, customer, line_items):
        def create():
            try:
                return create_quote(tenant.pk, customer.pk, line_items)
            except Exception as e:
                return e
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=5) as executor:
            futures = [executor.submit(create) for _ in range(10)]
            results = [future.result() for future in as_completed(futures)]

        errors = [r for r in results if isinstance(r, Exception)]
        assert errors == [], f"Errors during concurrent creation: {errors}"
        numbers = list(Quote.objects.filter(tenant_id=tenant.pk).values_list("quote_number", flat=True))
        assert sorted(numbers) == sorted(f"QUO-ACME-{n}" for n in range(1001, 1011))
        assert QuoteNumberSequence.objects.get(tenant_id=tenant.pk).current_value == 1010
