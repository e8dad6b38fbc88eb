import pytest

from gangbook.models import format_cost_display, master_crafted_cost, round_up_to_five


@pytest.mark.parametrize(
    "value,show_sign,expected",
    [
        (5, False, "5¢"),
        (5, True, "+5¢"),
        (0, True, "+0¢"),
        (-5, True, "-5¢"),
        (-5, False, "-5¢"),
        ("15", False, "15¢"),
        ("15", True, "+15¢"),
        ("Varies", True, "Varies"),
    ],
)
def test_format_cost_display(value, show_sign, expected):
    assert format_cost_display(value, show_sign=show_sign) == expected


@pytest.mark.parametrize(
    "value,expected", [(0, 0), (1, 5), (5, 5), (36, 40), (37.5, 40), (125, 125)]
)
def test_round_up_to_five(value, expected):
    assert round_up_to_five(value) == expected


def test_master_crafted_cost_rounds_premium_up_to_five():
    """A 25% premium, rounded up to the next multiple of 5."""
    assert master_crafted_cost(100) == 125
    assert master_crafted_cost(30) == 40
    assert master_crafted_cost(0) == 0
