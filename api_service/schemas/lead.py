from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

LeadStatus = Literal["new", "contacted", "qualified", "converted", "lost"]


class LeadResponse(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    heating_type: Optional[str] = None
    form_data: Dict[str, Any] = Field(default_factory=dict)
    calculation_results: Dict[str, Any] = Field(default_factory=dict)
    status: LeadStatus = "new"
    source_page: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LeadStatusUpdate(BaseModel):
    status: LeadStatus


class LeadSubmit(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    city: Optional[str] = Field(default=None, max_length=100)
    heating_type: Optional[str] = Field(default=None, max_length=100)
    source_page: Optional[str] = Field(default=None, max_length=500)
    form_data: Dict[str, Any] = Field(default_factory=dict)


class LeadSummary(BaseModel):
    total: int = 0
    last_7_days: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_heating_type: Dict[str, int] = Field(default_factory=dict)


class LeadBulkDelete(BaseModel):
    ids: List[int] = Field(min_length=1)


class LeadBulkStatusUpdate(LeadBulkDelete):
    status: LeadStatus
