"""Pytest configuration for django-quotes tests."""

import pytest

from django_quotes.conf import clear_directory_cache


@pytest.fixture(autouse=True)
def _fresh_directory():
    clear_directory_cache()
    yield
    clear_directory_cache()


@pytest.fixture
def tenant(db):
    from tests.testapp.models import Tenant
    return Tenant.objects.create(id="tenant-1", slug="acme")


@pytest.fixture
def other_tenant(db):
    from tests.testapp.models import Tenant
    return Tenant.objects.create(id="tenant-2", slug="globex")


@pytest.fixture
def customer(tenant):
    """A customer organization with billing details."""
    from tests.testapp.models import Customer
    return Customer.objects.create(
        id="cust-1",
        tenant=tenant,
        name="Initech",
        billing_email="billing@initech.example",
        billing_address="1 Initech Way, Austin TX",
    )


@pytest.fixture
def deal(tenant):
    from tests.testapp.models import Deal
    return Deal.objects.create(id="deal-1", tenant=tenant)


@pytest.fixture
def plan(tenant):
    from tests.testapp.models import ProductPlan
    return ProductPlan.objects.create(id="plan-1", tenant=tenant)


@pytest.fixture
def line_items():
    """Scenario A line items: 2 x 5000 + 1 x 3000."""
    return [
        {"description": "A", "quantity": 2, "unitPrice": 5000},
        {"description": "B", "quantity": 1, "unitPrice": 3000},
    ]


@pytest.fixture
def draft_quote(tenant, customer, line_items):
    from django_quotes.services import create_quote
    return create_quote(tenant.pk, customer.pk, line_items, tax=2000)


@pytest.fixture
def user(db, django_user_model):
    """Create a test user."""
    return django_user_model.objects.create_user(
        username="testuser",
        password="testpass123",
    )
