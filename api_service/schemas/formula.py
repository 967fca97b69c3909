from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

FormulaType = Literal["energy_calculation", "custom", "template"]

MAX_FORMULA_LENGTH = 1000


class Formula(BaseModel):
    name: str
    formula_text: str
    description: Optional[str] = None
    formula_type: FormulaType = "energy_calculation"
    unit: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class FormulaBase(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    formula_text: Optional[str] = Field(default=None, max_length=MAX_FORMULA_LENGTH)
    description: Optional[str] = None
    formula_type: Optional[FormulaType] = None
    unit: Optional[str] = None
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None


class FormulaCreate(FormulaBase):
    name: str = Field(min_length=1, max_length=255)
    formula_text: str = Field(min_length=1, max_length=MAX_FORMULA_LENGTH)
    formula_type: FormulaType = "energy_calculation"
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)


class FormulaUpdate(FormulaBase):
    pass


class FormulaResponse(Formula):
    id: int
    version: int
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FormulaToggleRequest(BaseModel):
    is_active: bool


class FormulaValidateRequest(BaseModel):
    formula_text: str


class FormulaReferences(BaseModel):
    fields: List[str] = Field(default_factory=list)
    calcs: List[str] = Field(default_factory=list)
    lookups: List[str] = Field(default_factory=list)


class FormulaValidateResponse(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    references: FormulaReferences = Field(default_factory=FormulaReferences)


class FormulaExecuteRequest(BaseModel):
    formula_text: Optional[str] = Field(default=None, max_length=MAX_FORMULA_LENGTH)
    formula_id: Optional[int] = None
    fields: Dict[str, Any] = Field(default_factory=dict)


class FormulaExecuteResponse(BaseModel):
    success: bool
    result: Union[float, int, str, bool, None] = None
    error: Optional[str] = None
    execution_time: float = 0.0


class FormulaRenderRequest(BaseModel):
    content: str
    fields: Dict[str, Any] = Field(default_factory=dict)


class FormulaRenderResponse(BaseModel):
    result: str


class ShortcodeInfo(BaseModel):
    name: str
    shortcode: str
    description: str
    category: str
    unit: Optional[str] = None


class FormulaVariable(BaseModel):
    name: str
    type: Literal["number", "string", "boolean"] = "number"
    description: Optional[str] = None
    required: bool = True
    unit: Optional[str] = None


class FormulaTemplate(BaseModel):
    id: str
    name: str
    description: str
    formula_text: str
    variables: List[FormulaVariable] = Field(default_factory=list)
    category: str
    tags: List[str] = Field(default_factory=list)
