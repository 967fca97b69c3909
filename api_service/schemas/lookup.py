from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

Operator = Literal[
    "==", "!=", "<", ">", "<=", ">=",
    "equals", "not_equals",
    "greater_than", "greater_than_or_equal",
    "less_than", "less_than_or_equal",
    "contains", "starts_with", "ends_with",
    "in", "not_in",
]


class FieldCondition(BaseModel):
    field: str = Field(min_length=1)
    operator: Operator = "equals"
    value: Any = None


class ConditionLogic(BaseModel):
    type: Literal["AND", "OR"] = "AND"
    conditions: List[FieldCondition] = Field(default_factory=list)


class FormulaAction(BaseModel):
    type: Literal["formula"] = "formula"
    formula_text: Optional[str] = None
    formula_name: Optional[str] = None
    unit: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self):
        if not self.formula_text and not self.formula_name:
            raise ValueError("formula action needs formula_text or formula_name")
        return self

    @property
    def template(self) -> str:
        if self.formula_text:
            return self.formula_text
        return f"[calc:{self.formula_name}]"


class ValueAction(BaseModel):
    type: Literal["value"] = "value"
    value: Any


class ErrorAction(BaseModel):
    type: Literal["error"] = "error"
    message: Optional[str] = None


LookupAction = Annotated[Union[FormulaAction, ValueAction, ErrorAction], Field(discriminator="type")]


class RuleCondition(BaseModel):
    kind: Literal["rule"] = "rule"
    condition_rule: str = Field(min_length=1)
    target_shortcode: str = Field(min_length=1)
    description: Optional[str] = None
    is_active: bool = True


class LogicCondition(BaseModel):
    kind: Literal["logic"] = "logic"
    condition_logic: ConditionLogic
    action: LookupAction
    description: Optional[str] = None
    is_active: bool = True


LookupCondition = Annotated[Union[RuleCondition, LogicCondition], Field(discriminator="kind")]


class LookupTable(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    title: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    default_action: Optional[LookupAction] = None
    conditions: List[LookupCondition] = Field(default_factory=list)


class LookupCreate(LookupTable):
    pass


class LookupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    title: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    default_action: Optional[LookupAction] = None
    conditions: Optional[List[LookupCondition]] = None


class LookupResponse(LookupTable):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LookupTestRequest(BaseModel):
    fields: Dict[str, Any] = Field(default_factory=dict)


class LookupTestResponse(BaseModel):
    success: bool
    result: Any = None
    matched_condition: Optional[int] = None
    used_default: bool = False
    error: Optional[str] = None
    execution_time: float = 0.0
