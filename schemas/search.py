from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from schemas.candidate import CandidateRecord


class SearchFilters(BaseModel):
    skills: Optional[str] = None
    experience: Optional[str] = None  # "3-5" | "5+"
    company: Optional[str] = None
    education: Optional[str] = None
    location: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def loose_text(cls, value):
        # numbers are accepted as text ("experience": 5); other shapes mean "no constraint"
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value if isinstance(value, str) else None


class SearchResponse(BaseModel):
    success: bool = True
    data: List[CandidateRecord]
    query: str
    filters: Dict[str, Any] = {}
    timestamp: str


class SearchErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    timestamp: str


class AISearchRequest(BaseModel):
    query: str


# Envelope returned by the AI query service
class AISearchResult(BaseModel):
    data: List[Dict[str, Any]] = []
    explanation: Optional[str] = None
    confidence: Optional[float] = None
