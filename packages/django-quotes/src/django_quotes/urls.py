"""URL configuration for quotes.

Include under a prefix that captures the tenant, e.g.:

    path("api/tenant/<str:tenant_id>/", include("django_quotes.urls")),

expire is time-driven (see the expire_quotes command) and has no route.
"""

from django.urls import path

from . import views

app_name = "django_quotes"

urlpatterns = [
    path("quotes/", views.api_quotes, name="quotes"),
    path("quotes/<uuid:quote_id>/", views.api_quote_detail, name="quote_detail"),
    path("quotes/<uuid:quote_id>/send/", views.api_quote_transition, {"event": "send"}, name="quote_send"),
    path("quotes/<uuid:quote_id>/accept/", views.api_quote_transition, {"event": "accept"}, name="quote_accept"),
    path("quotes/<uuid:quote_id>/reject/", views.api_quote_transition, {"event": "reject"}, name="quote_reject"),
    path("quotes/<uuid:quote_id>/convert/", views.api_quote_transition, {"event": "convert"}, name="quote_convert"),
]
