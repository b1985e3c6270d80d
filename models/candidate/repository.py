import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.candidate.model import Candidate, utcnow
from models.candidate.query_builder import build_search_statement, match_any_field
from schemas.candidate import CandidateBase, CandidateCreate, CandidateUpdate
from schemas.search import SearchFilters
from utils.exceptions import SearchError

logger = logging.getLogger(__name__)

RECORD_FIELDS = list(CandidateBase.model_fields)


async def create_candidate(db: AsyncSession, data: CandidateCreate) -> Candidate:
    candidate = Candidate(**data.model_dump())
    db.add(candidate)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    await db.refresh(candidate)
    logger.info("Candidate %s created", candidate.id)
    return candidate


async def get_candidate(db: AsyncSession, candidate_id: str) -> Optional[Candidate]:
    return await db.get(Candidate, candidate_id)


async def update_candidate(
    db: AsyncSession,
    candidate_id: str,
    data: CandidateUpdate
) -> Optional[Candidate]:
    """ Full replace of the editable fields; resume_text is kept unless a new one is sent. """
    candidate = await db.get(Candidate, candidate_id)
    if candidate is None:
        return None

    for field in RECORD_FIELDS:
        setattr(candidate, field, getattr(data, field))
    if data.resume_text is not None:
        candidate.resume_text = data.resume_text
    candidate.updated_at = utcnow()

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    await db.refresh(candidate)
    logger.info("Candidate %s updated", candidate.id)
    return candidate


async def list_candidates_page(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10
) -> Tuple[List[Candidate], int]:
    stmt = select(Candidate)
    count_stmt = select(func.count()).select_from(Candidate)
    if search and search.strip():
        condition = match_any_field(search.strip())
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(
        stmt.order_by(Candidate.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def search_candidates(
    db: AsyncSession,
    query: str,
    filters: Optional[SearchFilters] = None
) -> List[Candidate]:
    """
    Runs the search statement. ValueError (blank query) propagates untouched;
    any store failure becomes SearchError so it is never confused with "no matches".
    """
    stmt = build_search_statement(query, filters)
    try:
        result = await db.execute(stmt)
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error("Candidate search failed: %s", e)
        raise SearchError("Search failed") from e
