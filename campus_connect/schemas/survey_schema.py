from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    questions: List[Dict[str, Any]] = Field(..., min_length=1)
    closes_at: Optional[datetime] = None


class SurveyRead(BaseModel):
    id: int
    created_by: int
    title: str
    description: Optional[str] = None
    questions: List[Dict[str, Any]]
    is_active: bool
    closes_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveyResponseCreate(BaseModel):
    answers: Dict[str, Any] = Field(..., min_length=1)


class SurveyResponseRead(BaseModel):
    id: int
    survey_id: int
    user_id: int
    answers: Dict[str, Any]
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
