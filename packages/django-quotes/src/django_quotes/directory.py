"""Base directory interface for tenant, customer, deal and plan lookups."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TenantRef:
    """The tenant that owns a quote."""

    id: str
    slug: str


@dataclass(frozen=True)
class CustomerRef:
    """Billing details copied onto a quote when it is created."""

    id: str
    name: str
    billing_email: Optional[str] = None
    billing_address: Optional[str] = None


class BaseQuoteDirectory:
    """
    Base class for the lookups the quote engine needs from the host CRM.

    Directories live OUTSIDE this package and are registered via the
    QUOTES_DIRECTORY setting. Every lookup is scoped to the tenant: a
    customer, deal or plan that belongs to another tenant does not exist.

    Example:

        class CrmQuoteDirectory(BaseQuoteDirectory):
            def get_tenant(self, tenant_id):
                org = Organization.objects.filter(pk=tenant_id).first()
                return TenantRef(id=str(org.pk), slug=org.slug) if org else None
            ...
    """

    def get_tenant(self, tenant_id: str) -> Optional[TenantRef]:
        raise NotImplementedError

    def get_customer(self, tenant_id: str, customer_id: str) -> Optional[CustomerRef]:
        raise NotImplementedError

    def deal_exists(self, tenant_id: str, deal_id: str) -> bool:
        raise NotImplementedError

    def product_plan_exists(self, tenant_id: str, product_plan_id: str) -> bool:
        raise NotImplementedError
