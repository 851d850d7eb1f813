"""
Field Element Unit Tests
Tests for core/crypto/field.py
"""
import pytest

from core.crypto.field import (
    BN254_PRIME,
    U128_MASK,
    is_field_element,
    join_u256,
    parse_felt,
    parse_field_element,
    short,
    split_u256,
)
from core.schemas.errors import InvalidFieldElementError


class TestParseFieldElement:

    def test_decimal_string(self):
        assert parse_field_element("12345") == 12345

    def test_hex_string(self):
        assert parse_field_element("0xff") == 255
        assert parse_field_element("0XFF") == 255

    def test_int_passthrough(self):
        assert parse_field_element(7) == 7

    def test_surrounding_whitespace_ignored(self):
        assert parse_field_element("  42 ") == 42

    def test_largest_element_accepted(self):
        assert parse_field_element(str(BN254_PRIME - 1)) == BN254_PRIME - 1

    @pytest.mark.parametrize("value", [
        str(BN254_PRIME),
        BN254_PRIME + 1,
        -1,
        "-1",
        "",
        "abc",
        "1.5",
        "0xzz",
        True,
    ])
    def test_rejects_non_field_values(self, value):
        with pytest.raises(InvalidFieldElementError):
            parse_field_element(value)

    def test_error_is_also_value_error(self):
        with pytest.raises(ValueError):
            parse_field_element("not-a-number")


class TestIsFieldElement:

    def test_bounds(self):
        assert is_field_element(0)
        assert is_field_element(BN254_PRIME - 1)
        assert not is_field_element(BN254_PRIME)
        assert not is_field_element(-1)

    def test_bool_is_not_an_element(self):
        assert not is_field_element(True)


class TestU256Limbs:

    def test_split_known_value(self):
        assert split_u256((5 << 128) + 7) == (7, 5)

    def test_join_inverts_split(self):
        value = BN254_PRIME - 12345
        assert join_u256(*split_u256(value)) == value

    def test_split_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            split_u256(1 << 256)

    def test_join_rejects_oversized_limb(self):
        with pytest.raises(ValueError):
            join_u256(U128_MASK + 1, 0)


class TestHelpers:

    def test_parse_felt_hex_and_decimal(self):
        assert parse_felt("0x10") == 16
        assert parse_felt("16") == 16
        assert parse_felt(16) == 16

    def test_short_truncates_long_values(self):
        assert short(123) == "123"
        assert short(10 ** 30) == "1" + "0" * 19 + "..."
