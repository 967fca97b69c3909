from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

FieldType = Literal["text", "number", "select", "radio", "checkbox", "buttons", "email", "tel"]


class CardField(BaseModel):
    field_name: str = Field(min_length=1, max_length=255, pattern=r"^[\w\-]+$")
    label: str = Field(min_length=1, max_length=255)
    field_type: FieldType = "text"
    options: List[str] = Field(default_factory=list)
    required: bool = False
    default_value: Optional[str] = None

    class Config:
        from_attributes = True

    @property
    def is_numeric(self) -> bool:
        return self.field_type == "number"


class CardFieldCreate(CardField):
    sort_order: int = 0


class CardFieldUpdate(BaseModel):
    field_name: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=r"^[\w\-]+$")
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    field_type: Optional[FieldType] = None
    options: Optional[List[str]] = None
    required: Optional[bool] = None
    default_value: Optional[str] = None
    sort_order: Optional[int] = None


class CardFieldResponse(CardField):
    id: int
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
