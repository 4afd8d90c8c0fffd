"""Tests for configuration and directory loading."""

import pytest
from django.test import override_settings

from django_quotes.conf import clear_directory_cache, get_directory, get_setting, load_directory
from django_quotes.directory import BaseQuoteDirectory
from django_quotes.exceptions import DirectoryLoadError


class TestGetSetting:

    def test_defaults(self):
        assert get_setting("NUMBER_PREFIX") == "QUO"
        assert get_setting("NUMBER_START") == 1001
        assert get_setting("TOTAL_TOLERANCE") == 1
        assert get_setting("DEFAULT_CURRENCY") == "USD"

    @override_settings(QUOTES_NUMBER_START=5000)
    def test_override(self):
        assert get_setting("NUMBER_START") == 5000

    def test_explicit_default(self):
        assert get_setting("UNKNOWN", "fallback") == "fallback"


class TestLoadDirectory:
    """Tests for load_directory function."""

    def test_load_valid_directory(self):
        directory = load_directory("tests.testapp.directory.ModelDirectory")

        assert isinstance(directory, BaseQuoteDirectory)

    def test_bad_dotted_path_format(self):
        with pytest.raises(DirectoryLoadError) as exc_info:
            load_directory("invalid")

        assert "Invalid dotted path format" in str(exc_info.value)

    def test_module_not_found(self):
        with pytest.raises(DirectoryLoadError) as exc_info:
            load_directory("nonexistent.module.Directory")

        assert "Cannot import module" in str(exc_info.value)

    def test_class_not_found(self):
        with pytest.raises(DirectoryLoadError) as exc_info:
            load_directory("tests.testapp.directory.MissingDirectory")

        assert "not found in module" in str(exc_info.value)

    def test_not_a_directory_subclass(self):
        with pytest.raises(DirectoryLoadError) as exc_info:
            load_directory("tests.testapp.directory.NotADirectory")

        assert "must be a subclass of BaseQuoteDirectory" in str(exc_info.value)

    def test_same_instance_until_cache_cleared(self):
        first = load_directory("tests.testapp.directory.ModelDirectory")

        assert load_directory("tests.testapp.directory.ModelDirectory") is first

        clear_directory_cache()

        assert load_directory("tests.testapp.directory.ModelDirectory") is not first


class TestGetDirectory:

    def test_uses_setting(self):
        assert type(get_directory()).__name__ == "ModelDirectory"

    @override_settings(QUOTES_DIRECTORY=None)
    def test_unconfigured(self):
        with pytest.raises(DirectoryLoadError) as exc_info:
            get_directory()

        assert exc_info.value.path == "QUOTES_DIRECTORY"

    def test_base_directory_is_abstract(self):
        with pytest.raises(NotImplementedError):
            BaseQuoteDirectory().get_tenant("tenant-1")
