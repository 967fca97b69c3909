import pytest

from api_service.formula.display import render_display
from api_service.formula.formatting import format_number, format_value
from api_service.schemas import Formula, LookupTable, RuleCondition
from tests.conftest import make_context

NBSP = "\u00a0"

SAVINGS = "([field:current_consumption] - [field:new_consumption]) * [field:energy_price]"


@pytest.mark.parametrize("value, expected", [
    (1440, f"1{NBSP}440"),
    (1234567.891, f"1{NBSP}234{NBSP}567,891"),
    (0.12345, "0,123"),
    (2.5, "2,5"),
    (-2.5, "\u22122,5"),
    (-0.0004, "0"),
    (999, "999"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_format_value_with_unit():
    assert format_value(1440, "€") == f"1{NBSP}440 €"
    assert format_value("oil", "€") == "oil"
    assert format_value(True) == "true"


@pytest.fixture
def context():
    return make_context(
        fields={"current_consumption": 20000, "new_consumption": 8000, "energy_price": "0,12", "city": "Tampere"},
        formulas={"annual-savings": Formula(name="annual-savings", formula_text=SAVINGS, unit="€")},
        lookups=[LookupTable(name="label", conditions=[
            RuleCondition(condition_rule="true", target_shortcode="'Heat pump'")])],
    )


def test_inline_shortcodes_in_prose(context):
    text = "Säästät [calc:annual-savings] vuodessa ([field:city], [lookup:label])."
    assert render_display(text, context) == f"Säästät 1{NBSP}440 € vuodessa (Tampere, Heat pump)."


def test_failed_shortcode_becomes_error_marker(context):
    text = "Tulos: [calc:missing] ja [calc:annual-savings]"
    assert render_display(text, context) == (
        f"Tulos: [Error: Formula 'missing' not found or not active] ja 1{NBSP}440 €"
    )


def test_whole_expression_is_evaluated(context):
    assert render_display("[calc:annual-savings] / 12", context) == "120"
    assert render_display("[calc:annual-savings]", context) == f"1{NBSP}440 €"


def test_failed_expression_renders_one_marker(context):
    assert render_display("[calc:annual-savings] / 0", context) == "[Error: Division by zero]"


def test_content_without_shortcodes_is_untouched(context):
    assert render_display("Plain text: 1 / 0", context) == "Plain text: 1 / 0"
    assert render_display("", context) == ""
