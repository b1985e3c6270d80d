from datetime import datetime
from typing import List, Optional
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.auxiliar import join_skills

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_LENGTH = 10
MIN_YEAR_PASSED_OUT = 1990
MAX_YEAR_PASSED_OUT = 2030


# Input schema: manual entry or the reviewed form after extraction
class CandidateBase(BaseModel):
    name: str
    email: str
    phone: str
    total_experience: int = Field(ge=0)
    current_company: str = ""
    primary_skills: str = ""
    college_marks: str = ""
    year_passed_out: int = Field(ge=MIN_YEAR_PASSED_OUT, le=MAX_YEAR_PASSED_OUT)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("email")
    @classmethod
    def email_shape(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_REGEX.match(value):
            raise ValueError("email must look like local@domain.tld")
        return value

    @field_validator("phone")
    @classmethod
    def phone_length(cls, value: str) -> str:
        if len(value) < MIN_PHONE_LENGTH:
            raise ValueError(f"phone must have at least {MIN_PHONE_LENGTH} characters")
        return value.strip()

    @field_validator("primary_skills", mode="before")
    @classmethod
    def canonical_skills(cls, value) -> str:
        if isinstance(value, (list, tuple)):
            return join_skills(value)
        return join_skills(value or "")

    @field_validator("current_company", "college_marks", mode="before")
    @classmethod
    def none_to_empty(cls, value) -> str:
        return "" if value is None else str(value).strip()


class CandidateCreate(CandidateBase):
    resume_text: Optional[str] = None


# Full replace (PUT): same required fields as creation
class CandidateUpdate(CandidateBase):
    resume_text: Optional[str] = None


# Output schema: rows are returned as stored, without the write-side checks
class CandidateRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    total_experience: int
    current_company: str = ""
    primary_skills: str = ""
    college_marks: str = ""
    year_passed_out: int
    resume_text: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CandidatePage(BaseModel):
    items: List[CandidateRecord]
    total: int
    page: int
    page_size: int
    total_pages: int


# Extractor output: every field as text, never null
class ExtractedCandidateDraft(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    total_experience: str = ""
    current_company: str = ""
    primary_skills: str = ""
    college_marks: str = ""
    year_passed_out: str = ""


class ExtractionResponse(BaseModel):
    file_name: str
    raw_text: str
    candidate: ExtractedCandidateDraft
    method: str  # "pattern" | "llm"


class ResumeQuestion(BaseModel):
    resume_text: str
    question: str


class ResumeAnswer(BaseModel):
    question: str
    answer: str


# Error response schema
class ErrorResponse(BaseModel):
    detail: str
