class FormulaError(Exception):
    """Base class for everything the resolver can raise."""


class ExpressionSyntaxError(FormulaError):
    def __init__(self, message: str, position: int | None = None):
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


class ResolutionError(FormulaError):
    pass


class MissingFieldError(ResolutionError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is required for this calculation but has no value")


class LookupMissError(ResolutionError):
    def __init__(self, lookup_name: str, message: str | None = None):
        self.lookup_name = lookup_name
        super().__init__(message or f"No conditions matched in lookup '{lookup_name}' and no default is configured")


class CircularReferenceError(ResolutionError):
    def __init__(self, path: list[str]):
        self.path = path
        super().__init__(f"Circular reference detected: {' -> '.join(path)}")


class DivisionByZeroError(ResolutionError):
    def __init__(self):
        super().__init__("Division by zero")


class FormulaTimeoutError(FormulaError):
    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"Formula execution exceeded {seconds:g}s")
