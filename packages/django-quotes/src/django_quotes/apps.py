"""Django app configuration for django-quotes."""

from django.apps import AppConfig


class DjangoQuotesConfig(AppConfig):
    """App configuration for django-quotes."""

    name = 'django_quotes'
    verbose_name = 'Quotes'
    default_auto_field = 'django.db.models.BigAutoField'
