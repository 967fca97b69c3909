import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from api_service.formula.conditions import evaluate_logic
from api_service.formula.context import ResolutionContext
from api_service.formula.errors import (
    CircularReferenceError,
    ExpressionSyntaxError,
    LookupMissError,
    MissingFieldError,
    ResolutionError,
)
from api_service.formula.expression import (
    Evaluator,
    Variable,
    collect_references,
    normalize_result,
    parse,
    truthy,
    walk,
)
from api_service.formula.shortcodes import find_shortcodes, normalize_name
from api_service.schemas.lookup import (
    ErrorAction,
    FormulaAction,
    LogicCondition,
    LookupTable,
    RuleCondition,
    ValueAction,
)

log = logging.getLogger(__name__)

MAX_DEPTH = 10


@dataclass
class LookupOutcome:
    value: Any
    matched_condition: int | None = None
    used_default: bool = False


class ShortcodeResolver:
    """
    Resolves a formula template against a ResolutionContext.

    One resolver serves one resolution: it keeps the chain of calc/lookup
    references currently being expanded (for cycle detection) and memoises
    each calc and lookup it has already resolved. `deadline`, when given,
    is checked before every reference expansion.
    """

    def __init__(self, context: ResolutionContext, deadline=None):
        self.context = context
        self.deadline = deadline
        self._stack: list[tuple[str, str, str]] = list()
        self._calc_results: dict[str, Any] = dict()
        self._lookup_results: dict[str, LookupOutcome] = dict()

    def resolve(self, template: str) -> Any:
        return normalize_result(self.evaluate(template))

    def evaluate(self, template: str) -> Any:
        return self.evaluate_node(parse(template))

    def evaluate_node(self, node) -> Any:
        try:
            return Evaluator(self.resolve_reference).evaluate(node)
        except RecursionError:
            raise ResolutionError("Formula is nested too deeply to evaluate") from None

    @staticmethod
    def references(template: str) -> dict[str, list[str]]:
        return collect_references(parse(template))

    def resolve_reference(self, kind: str, name: str) -> Any:
        if self.deadline is not None:
            self.deadline.check()
        if kind == "field":
            return self.resolve_field(name)
        if kind == "calc":
            return self.resolve_calc(name)
        if kind == "lookup":
            return self.resolve_lookup(name).value
        raise ResolutionError(f"Unknown shortcode type: {kind}")

    def resolve_field(self, name: str) -> Any:
        value = self.context.field_value(name)
        if value is not None:
            return value
        if self.context.missing_fields == "default":
            return self.context.field_default(name)
        raise MissingFieldError(name)

    def resolve_calc(self, name: str) -> Any:
        key = normalize_name(name)
        if key in self._calc_results:
            return self._calc_results[key]
        formula = self.context.get_formula(name)
        with self._expanding("calc", key, formula.name):
            value = normalize_result(self.evaluate(formula.formula_text))
        self._calc_results[key] = value
        return value

    def resolve_lookup(self, name: str) -> LookupOutcome:
        key = normalize_name(name)
        if key in self._lookup_results:
            return self._lookup_results[key]
        lookup = self.context.get_lookup(name)
        with self._expanding("lookup", key, lookup.name):
            outcome = self._match_lookup(lookup)
        self._lookup_results[key] = outcome
        return outcome

    @contextmanager
    def _expanding(self, kind: str, key: str, label: str):
        if any(k == kind and n == key for k, n, _ in self._stack):
            path = [f"{k}:{lbl}" for k, _, lbl in self._stack] + [f"{kind}:{label}"]
            raise CircularReferenceError(path)
        if len(self._stack) >= MAX_DEPTH:
            raise ResolutionError(f"Maximum dependency depth exceeded ({MAX_DEPTH} levels)")
        self._stack.append((kind, key, label))
        try:
            yield
        finally:
            self._stack.pop()

    def _match_lookup(self, lookup: LookupTable) -> LookupOutcome:
        for index, condition in enumerate(lookup.conditions):
            if not condition.is_active:
                continue
            if isinstance(condition, RuleCondition):
                if self._rule_matches(condition.condition_rule):
                    log.debug("lookup %s matched condition %s", lookup.name, index)
                    return LookupOutcome(self._resolve_target(condition.target_shortcode), index)
            elif isinstance(condition, LogicCondition):
                if evaluate_logic(condition.condition_logic, self.context.field_value):
                    log.debug("lookup %s matched condition %s", lookup.name, index)
                    return LookupOutcome(self._apply_action(lookup, condition.action), index)

        if lookup.default_action is not None:
            return LookupOutcome(self._apply_action(lookup, lookup.default_action), used_default=True)
        raise LookupMissError(lookup.name)

    def _rule_matches(self, rule: str) -> bool:
        try:
            return truthy(self.evaluate(rule))
        except MissingFieldError:
            return False

    def _resolve_target(self, target: str) -> Any:
        """
        Targets are expressions built from shortcodes and constants. Text without
        shortcodes that names anything, like `fossil` or `Ask for a quote`, is a literal.
        """
        has_shortcodes = bool(find_shortcodes(target))
        try:
            node = parse(target)
        except ExpressionSyntaxError:
            if has_shortcodes:
                raise
            return target.strip()
        if not has_shortcodes and any(isinstance(item, Variable) for item in walk(node)):
            return target.strip()
        return normalize_result(self.evaluate_node(node))

    def _apply_action(self, lookup: LookupTable, action) -> Any:
        if isinstance(action, FormulaAction):
            return normalize_result(self.evaluate(action.template))
        if isinstance(action, ValueAction):
            return action.value
        if isinstance(action, ErrorAction):
            raise LookupMissError(lookup.name, action.message)
        raise ResolutionError(f"Unsupported lookup action in '{lookup.name}'")


def resolve(template: str, context: ResolutionContext, deadline=None) -> Any:
    return ShortcodeResolver(context, deadline=deadline).resolve(template)
