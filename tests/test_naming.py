#!/usr/bin/env python3
"""
Tests for the naming conventions used to synthesize aliases and match names.
"""

import pytest

from type_binder import alias_for, kebab_case, normalize_name


class TestKebabCase:
    """Test suite for kebab_case."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("IntOption", "int-option"),
            ("StringOption", "string-option"),
            ("int_option", "int-option"),
            ("intOption", "int-option"),
            ("option2", "option-2"),
            ("Value", "value"),
            ("value", "value"),
            ("type_", "type"),
            ("some__double_underscore", "some-double-underscore"),
        ],
    )
    def test_kebab_case(self, name, expected):
        """Test case transitions, digits and separators."""
        assert kebab_case(name) == expected

    def test_consecutive_capitals_are_not_split(self):
        """Only lower-to-upper transitions insert a dash."""
        assert kebab_case("HTTPServer") == "httpserver"


class TestNormalizeName:
    """Test suite for normalize_name."""

    def test_aliases_and_attribute_names_normalize_alike(self):
        """Test that every spelling of one option normalizes to one name."""
        spellings = ["--int-option", "-int-option", "int_option", "IntOption", "INT_OPTION"]
        assert {normalize_name(s) for s in spellings} == {"int-option"}

    def test_single_dash_alias(self):
        assert normalize_name("-x") == "x"


class TestAliasFor:
    """Test suite for alias_for."""

    def test_single_character_names_get_single_dash(self):
        assert alias_for("x") == "-x"
        assert alias_for("Y") == "-Y"

    def test_multi_character_names_get_double_dash_and_kebab_case(self):
        assert alias_for("StringOption") == "--string-option"
        assert alias_for("bool_option") == "--bool-option"
        assert alias_for("ab") == "--ab"
