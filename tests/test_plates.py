"""Tests for vehicle number normalization"""

import pytest

from app.utils.plates import normalize_vehicle_number


class TestNormalizeVehicleNumber:

    def test_spaced_lowercase_matches_canonical(self):
        assert normalize_vehicle_number("mh 12 ab 1234") == "MH12AB1234"
        assert normalize_vehicle_number("MH12AB1234") == "MH12AB1234"

    def test_strips_tabs_and_newlines(self):
        assert normalize_vehicle_number(" mh\t12\nab 1234 ") == "MH12AB1234"

    @pytest.mark.parametrize("raw", ["mh 12 ab 1234", "  Ka01 mj 0001", "dl-3c-ab-1111", ""])
    def test_idempotent(self, raw):
        once = normalize_vehicle_number(raw)
        assert normalize_vehicle_number(once) == once

    def test_keeps_punctuation(self):
        # Only whitespace is removed
        assert normalize_vehicle_number("dl-3c ab") == "DL-3CAB"

    def test_empty_and_none(self):
        assert normalize_vehicle_number("") == ""
        assert normalize_vehicle_number(None) == ""
