"""Tests for header normalization and the alias table."""

from __future__ import annotations

import pytest

from tablecast.normalize.headers import clean_key, map_header, normalize_header, resolve_header
from tablecast.schema.household import FIELD_NAMES, HEADER_ALIASES


def test_normalize_header_strips_non_alphanumerics():
    assert normalize_header("Avg. Monthly Bill") == "avgmonthlybill"
    assert normalize_header("  Do you have solar panels installed? ") == "doyouhavesolarpanelsinstalled"
    assert normalize_header(123) == "123"


def test_normalize_header_is_idempotent():
    for raw in ["Avg. Monthly Bill", "unitName", "Type of connection (1-Single, 2-Three)"]:
        once = normalize_header(raw)
        assert normalize_header(once) == once


def test_map_header_known_and_unknown():
    assert map_header("avgmonthlybill") == "avgMonthlyBill"
    assert map_header("somethingelse") == "somethingelse"


def test_map_header_custom_aliases():
    assert map_header("city", {"city": "location"}) == "location"


@pytest.mark.parametrize(
    "raw,field",
    [
        ("Avg. Monthly Bill", "avgMonthlyBill"),
        ("Do you have solar panels installed?", "hasSolarPanels"),
        ("Number of family members", "familyMembers"),
        ("Type of connection (1-Single, 2-Three)", "connectionType"),
        ("Do you switch off lights/fans when not in use (Yes-1, N0-2)", "switchOffWhenNotInUse"),
        ("UNIT NAME", "unitName"),
    ],
)
def test_resolve_header_survey_spellings(raw, field):
    assert resolve_header(raw) == field


def test_resolve_header_unmapped_falls_back_to_clean_key():
    assert resolve_header("Favourite colour?") == "Favourite_colour"


def test_every_alias_targets_a_canonical_field():
    assert set(HEADER_ALIASES.values()) <= set(FIELD_NAMES)


def test_every_field_name_is_its_own_alias():
    for name in FIELD_NAMES:
        assert HEADER_ALIASES[name.lower()] == name


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Source of water?", "Source_of_water"),
        ("2021 total", "_2021_total"),
        ("???", "column"),
        ("", "column"),
        ("already_clean", "already_clean"),
    ],
)
def test_clean_key(raw, expected):
    assert clean_key(raw) == expected
