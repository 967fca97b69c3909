import re

from api_service.formula.errors import ExpressionSyntaxError
from api_service.formula.expression import Call, Variable, collect_references, parse, walk
from api_service.formula.functions import FUNCTIONS
from api_service.formula.shortcodes import (
    ANY_BRACKET_PATTERN,
    MAX_NAME_LENGTH,
    NAME_PATTERN,
    SHORTCODE_KINDS,
    SHORTCODE_PATTERN,
    find_shortcodes,
)
from api_service.schemas.formula import MAX_FORMULA_LENGTH, FormulaReferences, FormulaValidateResponse

ALLOWED_SYMBOLS = set("+-*/()<>=!&|,.[]:_'\"")
STRING_LITERAL_RE = re.compile(r"'[^']*'|\"[^\"]*\"")
OPERATOR_RE = re.compile(r"&&|\|\||[<>=!]=|[+\-*/<>]")
MAX_OPERATORS = 50
MAX_NESTING = 10


def _without_literals(text: str) -> str:
    return STRING_LITERAL_RE.sub(" ", SHORTCODE_PATTERN.sub(" ", text))


def _check_balance(text: str, errors: list[str]) -> int:
    """Returns the deepest parenthesis nesting."""
    depth = max_depth = 0
    brackets = 0
    for char in text:
        if char == "(":
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == ")":
            depth -= 1
            if depth < 0:
                errors.append("Unbalanced parentheses: ')' without a matching '('")
                depth = 0
        elif char == "[":
            brackets += 1
        elif char == "]":
            brackets -= 1
            if brackets < 0:
                errors.append("Unbalanced brackets: ']' without a matching '['")
                brackets = 0
    if depth > 0:
        errors.append(f"Unbalanced parentheses: {depth} '(' not closed")
    if brackets > 0:
        errors.append(f"Unbalanced brackets: {brackets} '[' not closed")
    return max_depth


def _check_shortcodes(text: str, errors: list[str]):
    for match in ANY_BRACKET_PATTERN.finditer(text):
        kind, name = match.group(1).strip(), match.group(2).strip()
        if kind not in SHORTCODE_KINDS:
            errors.append(f"Unknown shortcode type '{kind}' in {match.group(0)}")
        elif not name:
            errors.append(f"Empty name in {match.group(0)}")
        elif len(name) > MAX_NAME_LENGTH or not NAME_PATTERN.match(name):
            errors.append(f"Invalid name '{name}' in {match.group(0)}")


def _scan_references(text: str) -> dict[str, list[str]]:
    references = {kind: list() for kind in SHORTCODE_KINDS}
    for shortcode in find_shortcodes(text):
        if shortcode.name not in references[shortcode.kind]:
            references[shortcode.kind].append(shortcode.name)
    return references


def validate_formula(text: str) -> FormulaValidateResponse:
    errors = list()
    warnings = list()

    if not text or not text.strip():
        return FormulaValidateResponse(is_valid=False, errors=["Formula text cannot be empty"])

    if len(text) > MAX_FORMULA_LENGTH:
        errors.append(f"Formula is too long ({len(text)} characters, maximum {MAX_FORMULA_LENGTH})")

    plain = STRING_LITERAL_RE.sub(" ", text)
    max_depth = _check_balance(plain, errors)
    _check_shortcodes(plain, errors)

    invalid = sorted({c for c in _without_literals(text)
                      if not (c.isalnum() or c.isspace() or c in ALLOWED_SYMBOLS)})
    if invalid:
        errors.append(f"Invalid characters: {' '.join(invalid)}")

    references = None
    if not errors:
        try:
            node = parse(text)
        except ExpressionSyntaxError as e:
            errors.append(f"Syntax error: {e}")
        else:
            references = collect_references(node)
            for item in walk(node):
                if isinstance(item, Call) and item.name not in FUNCTIONS:
                    errors.append(f"Unknown function: {item.name}()")
                elif isinstance(item, Variable):
                    warnings.append(f"'{item.name}' is read as [field:{item.name}]")

    if references is None:
        references = _scan_references(text)

    operators = len(OPERATOR_RE.findall(_without_literals(text)))
    if operators == 0 and "(" not in text:
        warnings.append("Formula contains no operators")
    elif operators > MAX_OPERATORS:
        warnings.append(f"Formula is complex ({operators} operators), consider splitting it into [calc:...] parts")
    if max_depth > MAX_NESTING:
        warnings.append(f"Parentheses are nested {max_depth} levels deep")

    return FormulaValidateResponse(
        is_valid=not errors,
        errors=errors,
        warnings=list(dict.fromkeys(warnings)),
        references=FormulaReferences(
            fields=references["field"],
            calcs=references["calc"],
            lookups=references["lookup"],
        ),
    )


def validate_target(text: str) -> list[str]:
    """
    Errors for a lookup rule target. Text without brackets resolves as a literal
    or a constant expression, so only targets that carry shortcodes are checked
    as formulas.
    """
    if "[" not in text and "]" not in text:
        return list()
    return validate_formula(text).errors
