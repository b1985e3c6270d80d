# models/cv_processing.py

import logging
import os
import re
from typing import List

import fitz  # PyMuPDF for PDFs
from docx import Document  # python-docx for .docx
from starlette.concurrency import run_in_threadpool

from config import MAX_RESUME_CHARS
from schemas.candidate import ExtractedCandidateDraft
from utils.auxiliar import join_skills
from utils.exceptions import ExtractionError

logger = logging.getLogger(__name__)

# --- Text acquisition ---
def _read_text(file_path: str) -> str:
    file_extension = os.path.splitext(file_path)[1].lower()
    text = ""

    if file_extension == ".pdf":
        try:
            doc = fitz.open(file_path)
            for page in doc:
                text += page.get_text()
            doc.close()
        except Exception as e:
            logger.warning("Could not read PDF %s: %s", file_path, e)
            raise ValueError("Could not extract text from the PDF.")
    elif file_extension == ".docx":
        try:
            doc = Document(file_path)
            for paragraph in doc.paragraphs:
                text += paragraph.text + "\n"
        except Exception as e:
            logger.warning("Could not read DOCX %s: %s", file_path, e)
            raise ValueError("Could not extract text from the DOCX.")
    elif file_extension == ".txt":
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    else:
        raise ValueError(f"Unsupported file format: {file_extension}")

    return text


async def extract_text_from_file(file_path: str) -> str:
    # PDF and DOCX parsing is blocking; keep it off the event loop
    return await run_in_threadpool(_read_text, file_path)


# --- Cleaning (precondition for both extractors) ---
WHITESPACE_REGEX = re.compile(r"\s+")
PAGE_MARKER_REGEX = re.compile(r"\bpage\s*\d+\b", re.IGNORECASE)

def clean_resume_text(raw_text: str, max_chars: int = MAX_RESUME_CHARS) -> str:
    text = WHITESPACE_REGEX.sub(" ", raw_text or "")
    text = PAGE_MARKER_REGEX.sub("", text)
    text = WHITESPACE_REGEX.sub(" ", text).strip()
    return text[:max_chars]


# --- Pattern-based field extraction ---
SKILL_VOCABULARY: List[str] = [
    "React", "Angular", "Vue", "Node.js", "Python", "Java", "JavaScript", "TypeScript",
    "PHP", "Ruby", "C++", "C#", "AWS", "Azure", "Docker", "Kubernetes",
    "MongoDB", "MySQL", "PostgreSQL", "Git", "HTML", "CSS",
]

NAME_REGEX = re.compile(r"^([A-Z][a-z]+ [A-Z][a-z]+)", re.MULTILINE)
EMAIL_REGEX = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_REGEX = re.compile(r"[\d\s+\-()]{10,}")
EXPERIENCE_REGEX = re.compile(r"(\d+)\+?\s*years(?:\s+of\s+experience)?", re.IGNORECASE)
MARKS_REGEX = re.compile(r"(\d+(?:\.\d+)?)\s*(%|CGPA|GPA)", re.IGNORECASE)
YEAR_REGEX = re.compile(r"\b(?:19|20)\d{2}\b")
# Longest names first so "JavaScript" wins over "Java"
SKILLS_REGEX = re.compile(
    r"(?<![A-Za-z0-9])("
    + "|".join(re.escape(s) for s in sorted(SKILL_VOCABULARY, key=len, reverse=True))
    + r")(?![A-Za-z+#])",
    re.IGNORECASE,
)


def _first_group(regex: re.Pattern, text: str) -> str:
    match = regex.search(text)
    return match.group(1) if match else ""


def _first_match(regex: re.Pattern, text: str) -> str:
    match = regex.search(text)
    return match.group(0) if match else ""


def _extract_phone(text: str) -> str:
    match = PHONE_REGEX.search(text)
    if not match:
        return ""
    return re.sub(r"\s", "", match.group(0))


def _extract_marks(text: str, preserve_unit: bool) -> str:
    match = MARKS_REGEX.search(text)
    if not match:
        return ""
    number, unit = match.group(1), match.group(2).upper()
    if not preserve_unit:
        return number
    return f"{number}%" if unit == "%" else f"{number} {unit}"


def _extract_year(text: str) -> str:
    years = [int(y) for y in YEAR_REGEX.findall(text)]
    return str(max(years)) if years else ""


def extract_cv_data_from_text(text: str, preserve_unit: bool = True) -> ExtractedCandidateDraft:
    """
    Best-effort structured draft from cleaned resume text (see clean_resume_text).

    A field whose pattern does not match is returned as "". current_company is
    never filled here; it is left for manual entry or the LLM extractor.
    """
    try:
        skills = [m.group(1) for m in SKILLS_REGEX.finditer(text)]

        return ExtractedCandidateDraft(
            name=_first_group(NAME_REGEX, text),
            email=_first_match(EMAIL_REGEX, text),
            phone=_extract_phone(text),
            total_experience=_first_group(EXPERIENCE_REGEX, text),
            current_company="",
            primary_skills=join_skills(skills),
            college_marks=_extract_marks(text, preserve_unit),
            year_passed_out=_extract_year(text),
        )
    except re.error as e:
        logger.error("Pattern engine failed during extraction: %s", e)
        raise ExtractionError("Resume extraction is unavailable.") from e
