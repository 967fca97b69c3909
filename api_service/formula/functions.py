import math
from decimal import Decimal, ROUND_HALF_UP

from api_service.formula.errors import ResolutionError


def round_half_up(value: float, digits: float = 0) -> float:
    digits = int(digits)
    exponent = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def safe_sqrt(value: float) -> float:
    if value < 0:
        raise ResolutionError(f"sqrt of a negative number: {value:g}")
    return math.sqrt(value)


def safe_pow(base: float, exponent: float) -> float:
    try:
        result = math.pow(base, exponent)
    except (OverflowError, ValueError) as e:
        raise ResolutionError(f"pow({base:g}, {exponent:g}) is not a real number: {e}") from e
    return result


# name -> (callable, min args, max args or None for variadic)
FUNCTIONS = {
    "round": (round_half_up, 1, 2),
    "sqrt": (safe_sqrt, 1, 1),
    "max": (max, 1, None),
    "min": (min, 1, None),
    "abs": (abs, 1, 1),
    "floor": (math.floor, 1, 1),
    "ceil": (math.ceil, 1, 1),
    "pow": (safe_pow, 2, 2),
}


def call_function(name: str, args: list[float]) -> float:
    try:
        func, min_args, max_args = FUNCTIONS[name]
    except KeyError:
        raise ResolutionError(f"Unknown function: {name}") from None

    if len(args) < min_args or (max_args is not None and len(args) > max_args):
        expected = str(min_args) if min_args == max_args else f"{min_args}..{max_args or 'n'}"
        raise ResolutionError(f"{name}() takes {expected} argument(s), got {len(args)}")

    if name in ("max", "min"):
        return func(args)
    return func(*args)


FUNCTION_DOCS = {
    "round": {
        "args": ["value: number", "digits?: int"],
        "description": "Rounds half away from zero to the given number of decimals.",
        "example": "round([calc:annual-savings] / 12, 1)"
    },
    "sqrt": {
        "args": ["value: number"],
        "description": "Square root. Fails on negative input.",
        "example": "sqrt([field:floor_area])"
    },
    "max": {
        "args": ["value: number", "...values: number"],
        "description": "Largest of the arguments.",
        "example": "max([field:residents], 1)"
    },
    "min": {
        "args": ["value: number", "...values: number"],
        "description": "Smallest of the arguments.",
        "example": "min([calc:heat-demand], 30000)"
    },
    "abs": {
        "args": ["value: number"],
        "description": "Absolute value.",
        "example": "abs([field:current_cost] - [field:new_cost])"
    },
    "floor": {
        "args": ["value: number"],
        "description": "Rounds down to the nearest integer.",
        "example": "floor([calc:payback-period])"
    },
    "ceil": {
        "args": ["value: number"],
        "description": "Rounds up to the nearest integer.",
        "example": "ceil([field:floor_area] / 50)"
    },
    "pow": {
        "args": ["base: number", "exponent: number"],
        "description": "Raises base to the power of exponent.",
        "example": "pow(1.05, [field:years])"
    },
}
