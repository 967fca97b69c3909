"""
Arithmetic/boolean expression language used by formulas and lookup rules.

The text is tokenized, parsed by recursive descent into a small tree and the
tree is evaluated directly; nothing is ever handed to the Python interpreter.
Shortcodes are leaves of the tree: the evaluator asks a callback for their
value, so the caller decides how `[field:x]`, `[calc:x]` and `[lookup:x]`
are resolved. Bare identifiers are treated as `[field:identifier]`.

Precedence, lowest first:
    or / ||
    and / &&
    not / !
    == != < > <= >=
    + -
    * /
    unary + -
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from api_service.formula.errors import ExpressionSyntaxError, ResolutionError, DivisionByZeroError
from api_service.formula.functions import call_function
from api_service.formula.shortcodes import SHORTCODE_PATTERN

MAX_MAGNITUDE = 1e15
MAX_PARSE_DEPTH = 64
MAX_TREE_DEPTH = 100

NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
IDENT_RE = re.compile(r"[^\W\d]\w*")
NUMERIC_STRING_RE = re.compile(r"^[+-]?(\d+([.,]\d+)?|[.,]\d+)$")

TWO_CHAR_OPS = ("==", "!=", "<=", ">=", "&&", "||")
ONE_CHAR_OPS = "+-*/<>!"
COMPARISON_OPS = ("==", "!=", "<", ">", "<=", ">=")
KEYWORD_OPS = {"and": "&&", "or": "||", "not": "!"}


@dataclass(frozen=True)
class Token:
    type: str
    value: Any
    pos: int


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class ShortcodeRef:
    kind: str
    name: str


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: Any


@dataclass(frozen=True)
class Binary:
    op: str
    left: Any
    right: Any


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple


def tokenize(text: str) -> list[Token]:
    tokens = list()
    pos = 0
    length = len(text)

    while pos < length:
        char = text[pos]

        if char.isspace():
            pos += 1
            continue

        if char == "[":
            match = SHORTCODE_PATTERN.match(text, pos)
            if not match:
                raise ExpressionSyntaxError("Malformed shortcode, expected [field:..], [calc:..] or [lookup:..]", pos)
            tokens.append(Token("SHORTCODE", (match.group(1), match.group(2).strip()), pos))
            pos = match.end()
            continue

        match = NUMBER_RE.match(text, pos)
        if match:
            tokens.append(Token("NUM", float(match.group()), pos))
            pos = match.end()
            continue

        if char in ("'", '"'):
            end = text.find(char, pos + 1)
            if end == -1:
                raise ExpressionSyntaxError("Unterminated string literal", pos)
            tokens.append(Token("STR", text[pos + 1:end], pos))
            pos = end + 1
            continue

        match = IDENT_RE.match(text, pos)
        if match:
            word = match.group()
            lowered = word.lower()
            if lowered in KEYWORD_OPS:
                tokens.append(Token("OP", KEYWORD_OPS[lowered], pos))
            elif lowered in ("true", "false"):
                tokens.append(Token("BOOL", lowered == "true", pos))
            else:
                tokens.append(Token("IDENT", word, pos))
            pos = match.end()
            continue

        if text[pos:pos + 2] in TWO_CHAR_OPS:
            tokens.append(Token("OP", text[pos:pos + 2], pos))
            pos += 2
            continue

        if char in ONE_CHAR_OPS:
            tokens.append(Token("OP", char, pos))
            pos += 1
            continue

        if char == "(":
            tokens.append(Token("LPAREN", char, pos))
        elif char == ")":
            tokens.append(Token("RPAREN", char, pos))
        elif char == ",":
            tokens.append(Token("COMMA", char, pos))
        else:
            raise ExpressionSyntaxError(f"Unexpected character '{char}'", pos)
        pos += 1

    tokens.append(Token("EOF", None, length))
    return tokens


class Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def accept_op(self, *ops: str) -> str | None:
        if self.current.type == "OP" and self.current.value in ops:
            return self.advance().value
        return None

    def expect(self, token_type: str, what: str) -> Token:
        if self.current.type != token_type:
            raise ExpressionSyntaxError(f"Expected {what}", self.current.pos)
        return self.advance()

    def parse(self):
        if self.current.type == "EOF":
            raise ExpressionSyntaxError("Expression is empty", 0)
        node = self.parse_or()
        if self.current.type != "EOF":
            raise ExpressionSyntaxError(f"Unexpected '{self.current.value}'", self.current.pos)
        if tree_depth(node) > MAX_TREE_DEPTH:
            raise ExpressionSyntaxError("Expression is nested too deeply", 0)
        return node

    def parse_or(self):
        self.depth += 1
        if self.depth > MAX_PARSE_DEPTH:
            raise ExpressionSyntaxError("Expression is nested too deeply", self.current.pos)
        node = self.parse_and()
        while self.accept_op("||"):
            node = Binary("||", node, self.parse_and())
        self.depth -= 1
        return node

    def parse_and(self):
        node = self.parse_not()
        while self.accept_op("&&"):
            node = Binary("&&", node, self.parse_not())
        return node

    def parse_not(self):
        if self.accept_op("!"):
            return Unary("!", self.parse_not())
        return self.parse_comparison()

    def parse_comparison(self):
        node = self.parse_additive()
        op = self.accept_op(*COMPARISON_OPS)
        if op:
            node = Binary(op, node, self.parse_additive())
            if self.current.type == "OP" and self.current.value in COMPARISON_OPS:
                raise ExpressionSyntaxError("Comparisons cannot be chained", self.current.pos)
        return node

    def parse_additive(self):
        node = self.parse_term()
        while True:
            op = self.accept_op("+", "-")
            if not op:
                return node
            node = Binary(op, node, self.parse_term())

    def parse_term(self):
        node = self.parse_unary()
        while True:
            op = self.accept_op("*", "/")
            if not op:
                return node
            node = Binary(op, node, self.parse_unary())

    def parse_unary(self):
        op = self.accept_op("+", "-")
        if op:
            return Unary(op, self.parse_unary())
        return self.parse_primary()

    def parse_primary(self):
        token = self.current

        if token.type in ("NUM", "STR", "BOOL"):
            self.advance()
            return Literal(token.value)

        if token.type == "SHORTCODE":
            self.advance()
            kind, name = token.value
            return ShortcodeRef(kind, name)

        if token.type == "IDENT":
            self.advance()
            if self.current.type == "LPAREN":
                self.advance()
                args = list()
                if self.current.type != "RPAREN":
                    args.append(self.parse_or())
                    while self.current.type == "COMMA":
                        self.advance()
                        args.append(self.parse_or())
                self.expect("RPAREN", f"')' to close {token.value}(")
                return Call(token.value.lower(), tuple(args))
            return Variable(token.value)

        if token.type == "LPAREN":
            self.advance()
            node = self.parse_or()
            self.expect("RPAREN", "')'")
            return node

        if token.type == "EOF":
            raise ExpressionSyntaxError("Unexpected end of expression", token.pos)
        raise ExpressionSyntaxError(f"Unexpected '{token.value}'", token.pos)


def parse(text: str):
    try:
        return Parser(text).parse()
    except RecursionError:
        raise ExpressionSyntaxError("Expression is nested too deeply") from None


def children(node) -> tuple:
    if isinstance(node, Unary):
        return (node.operand,)
    if isinstance(node, Binary):
        return node.left, node.right
    if isinstance(node, Call):
        return node.args
    return ()


def walk(node) -> Iterator:
    """Pre-order traversal with an explicit stack, so long operator chains never hit the recursion limit."""
    stack = [node]
    while stack:
        item = stack.pop()
        yield item
        stack.extend(reversed(children(item)))


def tree_depth(node) -> int:
    deepest = 0
    stack = [(node, 1)]
    while stack:
        item, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in children(item))
    return deepest


def collect_references(node) -> dict[str, list[str]]:
    """Names referenced by a parsed expression, in first-seen order, bare identifiers counted as fields."""
    references = {"field": list(), "calc": list(), "lookup": list()}
    for item in walk(node):
        if isinstance(item, ShortcodeRef):
            kind, name = item.kind, item.name
        elif isinstance(item, Variable):
            kind, name = "field", item.name
        else:
            continue
        if name not in references[kind]:
            references[kind].append(name)
    return references


def _compact(value: str) -> str:
    return re.sub(r"\s+", "", value)


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return bool(NUMERIC_STRING_RE.match(_compact(value)))
    return False


def to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and is_numeric(value):
        cleaned = _compact(value).replace(",", ".")
        return float(cleaned)
    raise ResolutionError(f"Value '{value}' is not numeric")


def normalize_result(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    value = float(value)
    if not math.isfinite(value):
        raise ResolutionError("Formula result is not a finite number")
    if abs(value) > MAX_MAGNITUDE:
        raise ResolutionError("Formula result is too large")
    value = round(value, 10)
    if value.is_integer():
        return int(value)
    return value


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def loose_equal(left: Any, right: Any) -> bool:
    if is_numeric(left) and is_numeric(right):
        return to_number(left) == to_number(right)
    return _as_text(left) == _as_text(right)


def truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() != ""
    return bool(value)


class Evaluator:
    def __init__(self, resolve_reference: Callable[[str, str], Any]):
        self.resolve_reference = resolve_reference

    def evaluate(self, node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, ShortcodeRef):
            return self.resolve_reference(node.kind, node.name)
        if isinstance(node, Variable):
            return self.resolve_reference("field", node.name)
        if isinstance(node, Unary):
            return self.evaluate_unary(node)
        if isinstance(node, Binary):
            return self.evaluate_binary(node)
        if isinstance(node, Call):
            args = [to_number(self.evaluate(arg)) for arg in node.args]
            return call_function(node.name, args)
        raise ResolutionError(f"Cannot evaluate {node!r}")

    def evaluate_unary(self, node: Unary) -> Any:
        operand = self.evaluate(node.operand)
        if node.op == "!":
            return not truthy(operand)
        number = to_number(operand)
        return -number if node.op == "-" else number

    def evaluate_binary(self, node: Binary) -> Any:
        if node.op == "&&":
            return truthy(self.evaluate(node.left)) and truthy(self.evaluate(node.right))
        if node.op == "||":
            return truthy(self.evaluate(node.left)) or truthy(self.evaluate(node.right))

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if node.op == "==":
            return loose_equal(left, right)
        if node.op == "!=":
            return not loose_equal(left, right)
        if node.op == "+" and isinstance(left, str) and isinstance(right, str) \
                and not (is_numeric(left) and is_numeric(right)):
            return left + right

        a, b = to_number(left), to_number(right)
        if node.op == "+":
            return a + b
        if node.op == "-":
            return a - b
        if node.op == "*":
            return a * b
        if node.op == "/":
            if b == 0:
                raise DivisionByZeroError()
            return a / b
        if node.op == "<":
            return a < b
        if node.op == ">":
            return a > b
        if node.op == "<=":
            return a <= b
        if node.op == ">=":
            return a >= b
        raise ResolutionError(f"Unknown operator: {node.op}")
