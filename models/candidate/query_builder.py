from typing import Optional

from sqlalchemy import String, and_, cast, or_, select
from sqlalchemy.sql import ColumnElement, Select

from config import SEARCH_RESULT_LIMIT
from models.candidate.model import Candidate
from schemas.search import SearchFilters
from utils.auxiliar import parse_experience_range

# =====================
# HELPERS
# =====================

# Every value reaches the database as a bound parameter; autoescape turns
# user-typed "%" and "_" into literals so matching stays plain substring.
def _contains(column, value: str) -> ColumnElement:
    return column.icontains(value, autoescape=True)


def match_any_field(query: str) -> ColumnElement:
    """ Case-insensitive substring match over every searchable column (logical OR). """
    return or_(
        _contains(Candidate.name, query),
        _contains(Candidate.email, query),
        _contains(Candidate.phone, query),
        _contains(Candidate.primary_skills, query),
        _contains(Candidate.current_company, query),
        _contains(Candidate.college_marks, query),
        _contains(cast(Candidate.total_experience, String), query),
        _contains(cast(Candidate.year_passed_out, String), query),
    )


def filter_conditions(filters: Optional[SearchFilters]) -> list:
    conditions = []
    if filters is None:
        return conditions

    if filters.skills and filters.skills.strip():
        conditions.append(_contains(Candidate.primary_skills, filters.skills.strip()))

    min_exp, max_exp = parse_experience_range(filters.experience)
    if min_exp is not None:
        conditions.append(Candidate.total_experience >= min_exp)
    if max_exp is not None:
        conditions.append(Candidate.total_experience <= max_exp)

    if filters.company and filters.company.strip():
        conditions.append(_contains(Candidate.current_company, filters.company.strip()))

    # No dedicated education/location columns: marks, graduation year and the resume text carry them
    if filters.education and filters.education.strip():
        education = filters.education.strip()
        conditions.append(or_(
            _contains(Candidate.college_marks, education),
            _contains(cast(Candidate.year_passed_out, String), education),
            _contains(Candidate.resume_text, education),
        ))

    if filters.location and filters.location.strip():
        conditions.append(_contains(Candidate.resume_text, filters.location.strip()))

    return conditions


# =====================
# BUILDER PRINCIPAL
# =====================

def build_search_statement(
    query: str,
    filters: Optional[SearchFilters] = None,
    limit: int = SEARCH_RESULT_LIMIT
) -> Select:
    """
    Newest-first, capped SELECT for a free-text query plus optional filters.

    The base OR-match and each present filter are AND-composed. A blank query
    raises ValueError so callers reject it before touching the store.
    """
    if not isinstance(query, str) or not query.strip():
        raise ValueError("Search query is required")

    conditions = [match_any_field(query.strip())] + filter_conditions(filters)

    return (
        select(Candidate)
        .where(and_(*conditions))
        .order_by(Candidate.created_at.desc())
        .limit(limit)
    )
