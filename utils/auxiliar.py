
from typing import Iterable, List, Optional, Tuple
import re

SKILL_SEPARATOR = ", "

EXPERIENCE_RANGE_REGEX = re.compile(r"^\s*(?P<min>\d+)\s*-\s*(?P<max>\d+)\s*$")
EXPERIENCE_MIN_REGEX = re.compile(r"^\s*(?P<min>\d+)\s*\+\s*$")

CODE_FENCE_REGEX = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def dedupe_skills(skills: Iterable[str]) -> List[str]:
    """ Drops empty tokens and case-insensitive repeats, keeping the first spelling seen. """
    seen = set()
    result = []
    for skill in skills:
        token = "" if skill is None else str(skill).strip()
        if not token:
            continue
        key = token.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(token)
    return result


def join_skills(skills: Iterable[str] | str | None) -> str:
    """
    Canonical primary_skills value: "React, Node.js, Python".
    Accepts a list or an already comma-separated string.
    """
    if skills is None:
        return ""
    if isinstance(skills, str):
        skills = skills.split(",")
    return SKILL_SEPARATOR.join(dedupe_skills(skills))


def parse_experience_range(value: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """
    "3-5" -> (3, 5), "5+" -> (5, None).
    Anything else (absent, "abc", "5", "5-3") -> (None, None): no constraint.
    """
    if not value or not isinstance(value, str):
        return None, None

    range_match = EXPERIENCE_RANGE_REGEX.match(value)
    if range_match:
        low, high = int(range_match.group("min")), int(range_match.group("max"))
        if low > high:
            return None, None
        return low, high

    min_match = EXPERIENCE_MIN_REGEX.match(value)
    if min_match:
        return int(min_match.group("min")), None

    return None, None


def strip_code_fences(text: str) -> str:
    """ Removes ```json ... ``` wrapping that chat models put around JSON replies. """
    return CODE_FENCE_REGEX.sub("", (text or "").strip()).strip()
