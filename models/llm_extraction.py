# models/llm_extraction.py

import json
import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from config import LLM_TEMPERATURE, OPENAI_API_KEY, OPENAI_MODEL
from schemas.candidate import ExtractedCandidateDraft
from utils.auxiliar import join_skills, strip_code_fences
from utils.exceptions import AIServiceError, ExtractionError

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None

EXTRACTION_SYSTEM_PROMPT = (
    "You are an HR assistant that extracts structured data from resumes. "
    "Always respond with a single JSON object and nothing else."
)

EXTRACTION_PROMPT = """Extract the following fields from the resume text below and return ONLY a JSON object with exactly these keys:
- "name": full name of the candidate
- "email": email address
- "phone": phone number
- "total_experience": total years of professional experience, as a whole number
- "current_company": the company the candidate currently works for
- "primary_skills": comma-separated list of the main technical skills
- "college_marks": college marks keeping their unit, e.g. "85%", "3.8 GPA", "8.5 CGPA"
- "year_passed_out": four-digit graduation year

Use an empty string for any field that is not present. Do not add explanations.

Resume text:
{resume_text}"""

QA_SYSTEM_PROMPT = (
    "You are an HR assistant. Answer questions about the candidate using only "
    "the resume provided. If the resume does not contain the answer, say so."
)


def _openai_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise AIServiceError("OPENAI_API_KEY is required for LLM requests")
        _client = AsyncOpenAI(api_key=OPENAI_API_KEY)
    return _client


async def complete(system_prompt: str, user_prompt: str, temperature: float = LLM_TEMPERATURE) -> str:
    """ One chat completion, no retries. Raises AIServiceError on any API failure. """
    try:
        resp = await _openai_client().chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
        )
    except OpenAIError as e:
        logger.error("LLM completion failed: %s", e)
        raise AIServiceError(f"LLM request failed: {e}") from e

    content = resp.choices[0].message.content if resp.choices else None
    if not content:
        raise AIServiceError("LLM returned an empty response")
    return content


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_extraction_reply(reply: str) -> ExtractedCandidateDraft:
    try:
        payload: Dict[str, Any] = json.loads(strip_code_fences(reply))
    except json.JSONDecodeError as e:
        raise ExtractionError("LLM reply was not valid JSON") from e
    if not isinstance(payload, dict):
        raise ExtractionError("LLM reply was not a JSON object")

    skills = payload.get("primary_skills")
    return ExtractedCandidateDraft(
        name=_as_text(payload.get("name")),
        email=_as_text(payload.get("email")),
        phone=_as_text(payload.get("phone")),
        total_experience=_as_text(payload.get("total_experience")),
        current_company=_as_text(payload.get("current_company")),
        primary_skills=join_skills(skills if isinstance(skills, list) else _as_text(skills)),
        college_marks=_as_text(payload.get("college_marks")),
        year_passed_out=_as_text(payload.get("year_passed_out")),
    )


async def extract_cv_data_with_llm(text: str) -> ExtractedCandidateDraft:
    """
    LLM counterpart of extract_cv_data_from_text. Fails as a whole: there is no
    fallback to the pattern extractor when the API or the JSON reply is unusable.
    """
    try:
        reply = await complete(EXTRACTION_SYSTEM_PROMPT, EXTRACTION_PROMPT.format(resume_text=text))
    except AIServiceError as e:
        raise ExtractionError(str(e)) from e
    draft = parse_extraction_reply(reply)
    logger.info("LLM extraction finished (%d chars of resume text)", len(text))
    return draft


async def answer_resume_question(resume_text: str, question: str) -> str:
    prompt = f"Resume:\n{resume_text}\n\nQuestion: {question}"
    return (await complete(QA_SYSTEM_PROMPT, prompt, temperature=0.3)).strip()
