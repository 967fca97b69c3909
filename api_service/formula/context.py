from typing import Any, Iterable, Literal, Mapping

from api_service.formula.errors import ResolutionError
from api_service.formula.shortcodes import normalize_name
from api_service.schemas.card_field import CardField
from api_service.schemas.formula import Formula
from api_service.schemas.lookup import LookupTable

MissingFieldPolicy = Literal["error", "default"]


class ResolutionContext:
    """
    Everything a resolution may read: submitted field values plus the formulas,
    lookup tables and card field declarations they can reference by name.
    The context is never mutated by the resolver.
    """

    def __init__(self,
                 fields: Mapping[str, Any] | None = None,
                 formulas: Iterable[Formula] = (),
                 lookups: Iterable[LookupTable] = (),
                 card_fields: Iterable[CardField] = (),
                 missing_fields: MissingFieldPolicy = "error"):
        self.fields = dict(fields or {})
        self.formulas = {normalize_name(f.name): f for f in formulas}
        self.lookups = {normalize_name(lk.name): lk for lk in lookups}
        self.card_fields = {cf.field_name: cf for cf in card_fields}
        self.missing_fields = missing_fields

    def field_value(self, name: str) -> Any:
        """Submitted value, or None when the field is absent or blank."""
        value = self.fields.get(name)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        return value

    def field_default(self, name: str) -> Any:
        declared = self.card_fields.get(name)
        if declared is not None and not declared.is_numeric:
            return ""
        return 0

    def get_formula(self, name: str) -> Formula:
        formula = self.formulas.get(normalize_name(name))
        if formula is None or not formula.is_active:
            raise ResolutionError(f"Formula '{name}' not found or not active")
        return formula

    def get_lookup(self, name: str) -> LookupTable:
        lookup = self.lookups.get(normalize_name(name))
        if lookup is None or not lookup.is_active:
            raise ResolutionError(f"Lookup table '{name}' not found or not active")
        return lookup
