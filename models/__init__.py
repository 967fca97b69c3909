__all__ = (
    "Base",
    "CardField",
    "FormSchema",
    "Formula",
    "FormulaLookup",
    "FormulaLookupCondition",
    "Lead",
    "ShortcodeConfig",
)

from .base import Base
from .card import CardField
from .form_schema import FormSchema
from .formula import Formula
from .lead import Lead
from .lookup import FormulaLookup, FormulaLookupCondition
from .shortcode_config import ShortcodeConfig
