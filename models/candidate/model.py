from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

from config import CANDIDATES_TABLE

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Candidate(Base):
    __tablename__ = CANDIDATES_TABLE

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)

    total_experience = Column(Integer, nullable=False, default=0)
    current_company = Column(String, nullable=False, default="")
    primary_skills = Column(String, nullable=False, default="")  # "React, Node.js, Python"
    college_marks = Column(String, nullable=False, default="")   # "85%", "8.5 CGPA", ...
    year_passed_out = Column(Integer, nullable=False)

    resume_text = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
