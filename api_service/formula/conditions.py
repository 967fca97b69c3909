from typing import Any

from api_service.formula.expression import is_numeric, to_number, loose_equal
from api_service.schemas.lookup import ConditionLogic, FieldCondition

SYMBOLIC_OPERATORS = {
    "==": "equals",
    "!=": "not_equals",
    ">": "greater_than",
    ">=": "greater_than_or_equal",
    "<": "less_than",
    "<=": "less_than_or_equal",
}


def _compare_numbers(field_value: Any, compare_value: Any, operator: str) -> bool:
    if not (is_numeric(field_value) and is_numeric(compare_value)):
        return False
    a, b = to_number(field_value), to_number(compare_value)
    if operator == "greater_than":
        return a > b
    if operator == "greater_than_or_equal":
        return a >= b
    if operator == "less_than":
        return a < b
    return a <= b


def evaluate_field_condition(condition: FieldCondition, field_value: Any) -> bool:
    operator = SYMBOLIC_OPERATORS.get(condition.operator, condition.operator)
    compare_value = condition.value

    if field_value is None:
        return operator in ("not_equals", "not_in")

    if operator == "equals":
        return loose_equal(field_value, compare_value)
    if operator == "not_equals":
        return not loose_equal(field_value, compare_value)
    if operator in ("greater_than", "greater_than_or_equal", "less_than", "less_than_or_equal"):
        return _compare_numbers(field_value, compare_value, operator)
    if operator == "contains":
        return str(compare_value).lower() in str(field_value).lower()
    if operator == "starts_with":
        return str(field_value).lower().startswith(str(compare_value).lower())
    if operator == "ends_with":
        return str(field_value).lower().endswith(str(compare_value).lower())
    if operator in ("in", "not_in"):
        if not isinstance(compare_value, (list, tuple)):
            return False
        found = any(loose_equal(field_value, item) for item in compare_value)
        return found if operator == "in" else not found
    return False


def evaluate_logic(logic: ConditionLogic, field_value) -> bool:
    """`field_value` maps a field name to its submitted value or None. No conditions means always true."""
    if not logic.conditions:
        return True
    results = (evaluate_field_condition(c, field_value(c.field)) for c in logic.conditions)
    if logic.type == "AND":
        return all(results)
    return any(results)
