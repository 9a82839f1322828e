from decimal import Decimal

from sharetab.services.money import divide_money, format_money, money_to_float, round_money, to_money
from sharetab.services.names import format_name_for_display, format_name_keys, normalize_name, normalize_names, unique_names


def test_round_money_half_up():
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert round_money(0.125) == Decimal("0.13")
    assert round_money("-0.005") == Decimal("-0.01")
    assert round_money(7) == Decimal("7.00")


def test_to_money_uses_float_repr():
    assert to_money(0.1) == Decimal("0.1")


def test_divide_money():
    assert divide_money(100, 3) == Decimal("33.33")
    assert divide_money(Decimal("0.05"), 2) == Decimal("0.03")


def test_money_to_float_and_format():
    assert money_to_float(Decimal("57.499")) == 57.5
    assert format_money(Decimal("1234.5"), "EUR") == "1,234.50 EUR"
    assert format_money(Decimal("-3")) == "-3.00"


def test_name_helpers():
    assert normalize_name("  Alice ") == "alice"
    assert unique_names(["Bob", "alice", " BOB", "Alice"]) == ["bob", "alice"]
    assert normalize_names(["A ", "a"]) == ["a", "a"]
    assert format_name_for_display("anna  MARIA") == "Anna Maria"
    assert format_name_keys({"bob": 1, "anna maria": 2}) == {"Bob": 1, "Anna Maria": 2}


def test_round_money_leaves_non_finite_for_validation():
    assert round_money("Infinity") == Decimal("Infinity")
    assert round_money(Decimal("NaN")).is_nan()
