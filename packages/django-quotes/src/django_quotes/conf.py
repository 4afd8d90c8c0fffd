"""Configuration helpers for django-quotes.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    QUOTES_DIRECTORY = 'crm.quotes.CrmQuoteDirectory'
    QUOTES_NUMBER_PREFIX = 'QUO'
"""

from functools import lru_cache
from importlib import import_module

from django.conf import settings

from .exceptions import DirectoryLoadError


DEFAULTS = {
    'DIRECTORY': None,
    'NUMBER_PREFIX': 'QUO',
    'NUMBER_START': 1001,
    'NUMBER_MAX_ATTEMPTS': 3,
    'TOTAL_TOLERANCE': 1,
    'DEFAULT_CURRENCY': 'USD',
}


def get_setting(name: str, default=None):
    """Get a setting with QUOTES_ prefix, falling back to DEFAULTS."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"QUOTES_{name}", default)


@lru_cache(maxsize=8)
def load_directory(dotted_path: str):
    """
    Import and instantiate a quote directory from dotted path.

    Raises DirectoryLoadError for bad imports or non-subclass directories.
    """
    from .directory import BaseQuoteDirectory

    try:
        module_path, class_name = dotted_path.rsplit('.', 1)
    except ValueError:
        raise DirectoryLoadError(dotted_path, "Invalid dotted path format")

    try:
        module = import_module(module_path)
    except ImportError as e:
        raise DirectoryLoadError(dotted_path, f"Cannot import module: {e}")

    try:
        directory_class = getattr(module, class_name)
    except AttributeError:
        raise DirectoryLoadError(dotted_path, f"Class '{class_name}' not found in module")

    if not isinstance(directory_class, type) or not issubclass(directory_class, BaseQuoteDirectory):
        raise DirectoryLoadError(
            dotted_path,
            f"'{class_name}' must be a subclass of BaseQuoteDirectory"
        )

    return directory_class()


def get_directory():
    """Return the configured directory instance."""
    path = get_setting('DIRECTORY')
    if not path:
        raise DirectoryLoadError('QUOTES_DIRECTORY', "Setting is not configured")
    return load_directory(path)


def clear_directory_cache():
    """Clear the directory loading cache. Useful for testing."""
    load_directory.cache_clear()
