"""JSON API views for quotes.

The host project mounts django_quotes.urls under a tenant prefix that
captures `tenant_id`. Authentication is the host's session middleware;
tenant membership checks are the host's responsibility.
"""

import json
import logging
from functools import wraps
from uuid import UUID

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .exceptions import NotFound, QuoteStateError, QuoteValidationError, StorageError
from .selectors import get_quote, list_quotes
from .serializers import quote_to_dict
from .services import create_quote, delete_quote, transition_quote, update_quote

logger = logging.getLogger(__name__)

# Wire names of the fields update_quote() accepts.
UPDATE_FIELD_MAP = {
    "lineItems": "line_items",
    "tax": "tax",
    "dealId": "deal_id",
    "productPlanId": "product_plan_id",
    "validUntil": "valid_until",
    "notes": "notes",
}


class BadRequest(Exception):
    pass


def quote_api(view):
    """Authenticate the caller and map quote errors to JSON responses."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({"error": "Unauthorized"}, status=401)
        try:
            return view(request, *args, **kwargs)
        except BadRequest as e:
            return JsonResponse({"error": str(e)}, status=400)
        except (QuoteValidationError, QuoteStateError) as e:
            return JsonResponse({"error": str(e)}, status=400)
        except NotFound as e:
            return JsonResponse({"error": str(e)}, status=404)
        except StorageError as e:
            logger.error(f"Quote request failed: {e}")
            return JsonResponse({"error": "Internal server error"}, status=500)

    return wrapper


def _json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except ValueError:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


@csrf_exempt
@quote_api
def api_quotes(request, tenant_id: str):
    """List quotes (GET) or create a draft quote (POST)."""
    if request.method == "GET":
        quotes = list_quotes(
            tenant_id,
            status=request.GET.get("status") or None,
            customer_id=request.GET.get("tenantOrgId") or None,
            deal_id=request.GET.get("dealId") or None,
        )
        return JsonResponse({"quotes": [quote_to_dict(q) for q in quotes]})

    if request.method == "POST":
        body = _json_body(request)
        quote = create_quote(
            tenant_id,
            body.get("tenantOrganizationId"),
            body.get("lineItems"),
            tax=body.get("tax"),
            deal_id=body.get("dealId"),
            product_plan_id=body.get("productPlanId"),
            valid_until=body.get("validUntil"),
            notes=body.get("notes"),
            currency=body.get("currency"),
        )
        return JsonResponse({"success": True, "quote": quote_to_dict(quote)}, status=201)

    return JsonResponse({"error": "Method not allowed"}, status=405)


@csrf_exempt
@quote_api
def api_quote_detail(request, tenant_id: str, quote_id: UUID):
    """Fetch (GET), edit (PUT) or delete (DELETE) a quote."""
    if request.method == "GET":
        quote = get_quote(tenant_id, quote_id)
        return JsonResponse({"quote": quote_to_dict(quote)})

    if request.method == "PUT":
        body = _json_body(request)
        changes = {UPDATE_FIELD_MAP.get(key, key): value for key, value in body.items()}
        quote = update_quote(tenant_id, quote_id, changes)
        return JsonResponse({"success": True, "quote": quote_to_dict(quote)})

    if request.method == "DELETE":
        delete_quote(tenant_id, quote_id)
        return JsonResponse({"success": True})

    return JsonResponse({"error": "Method not allowed"}, status=405)


@csrf_exempt
@quote_api
@require_POST
def api_quote_transition(request, tenant_id: str, quote_id: UUID, event: str):
    """Apply a lifecycle event. Convert takes {"invoiceId": ...}."""
    body = _json_body(request)
    quote = transition_quote(
        tenant_id,
        quote_id,
        event,
        invoice_id=body.get("invoiceId"),
        by_user=request.user,
    )
    return JsonResponse({"success": True, "quote": quote_to_dict(quote)})
