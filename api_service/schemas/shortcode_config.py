from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

ShortcodeCategory = Literal["customer", "results", "company", "system"]


class ShortcodeConfigCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100, pattern=r"^[\w.\-]+$")
    description: str = Field(min_length=1)
    example: str = Field(min_length=1)
    category: ShortcodeCategory
    replacement_value: str = Field(min_length=1)


class ShortcodeConfigUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100, pattern=r"^[\w.\-]+$")
    description: Optional[str] = None
    example: Optional[str] = None
    category: Optional[ShortcodeCategory] = None
    replacement_value: Optional[str] = None
    is_active: Optional[bool] = None


class ShortcodeConfigResponse(ShortcodeConfigCreate):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ShortcodeProcessRequest(BaseModel):
    content: str
    context: Dict[str, Any] = Field(default_factory=dict)


class ShortcodeProcessResponse(BaseModel):
    content: str
