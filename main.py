# main.py
from fastapi import FastAPI, UploadFile, File, HTTPException, Request, status, Depends, Query
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from typing import Optional
import datetime
import logging
import math
import os

import config
from config import add_cors_middleware
from db.session import get_db, init_models
from schemas.auth import LoginCredentials, Session, SignUpData, User
from schemas.candidate import (
    CandidateCreate,
    CandidatePage,
    CandidateRecord,
    CandidateUpdate,
    ErrorResponse,
    ExtractionResponse,
    ResumeAnswer,
    ResumeQuestion,
)
from schemas.search import AISearchRequest, AISearchResult, SearchErrorResponse, SearchFilters, SearchResponse
from models.ai_search import search_candidates_with_ai
from models.auth import get_auth_provider
from models.candidate import repository
from models.cv_processing import clean_resume_text, extract_cv_data_from_text, extract_text_from_file
from models.llm_extraction import answer_resume_question, extract_cv_data_with_llm
from utils.exceptions import AIServiceError, AuthError, ExtractionError, RequestInFlightError, SearchError
from utils.file_handler import remove_file, save_upload_file
from utils.request_logging import RequestLoggingMiddleware
from utils.single_flight import caller_key, in_flight

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("hr_candidates")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.AUTO_CREATE_TABLES:
        await init_models()
    yield


app = FastAPI(
    title="HR Solutions - Candidate Management API",
    description="API to upload resumes, extract candidate data, and store and search candidates.",
    version="1.0.0",
    lifespan=lifespan,
)

add_cors_middleware(app)
app.add_middleware(RequestLoggingMiddleware)

bearer_scheme = HTTPBearer(auto_error=False)


@app.exception_handler(RequestInFlightError)
async def request_in_flight_handler(request: Request, exc: RequestInFlightError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


# ===========================
# AUTH
# ===========================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        user = await get_auth_provider().get_user(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return user


@app.post("/auth/login", response_model=Session, summary="Opens a session")
async def login_endpoint(credentials: LoginCredentials):
    try:
        return await get_auth_provider().login(credentials)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@app.post("/auth/signup", response_model=Session, summary="Registers a user and opens a session")
async def signup_endpoint(data: SignUpData):
    try:
        return await get_auth_provider().signup(data)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/auth/logout", summary="Closes the current session")
async def logout_endpoint(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)):
    if credentials is not None:
        try:
            await get_auth_provider().logout(credentials.credentials)
        except AuthError as e:
            logger.warning("Logout could not reach the auth provider: %s", e)
    return {"ok": True}


@app.get("/auth/me", response_model=User)
async def me_endpoint(user: User = Depends(get_current_user)):
    return user


# ===========================
# HEALTH
# ===========================

@app.get("/", summary="Test endpoint")
async def read_root():
    return {"message": "Welcome to the HR Solutions candidate API"}


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


# ===========================
# RESUME EXTRACTION
# ===========================

async def _read_resume(file: UploadFile) -> str:
    """ Saves the upload, reads its text and returns it cleaned. Raises HTTPException(400) on bad input. """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file name was provided."
        )

    file_extension = os.path.splitext(file.filename)[1].lower()
    if file_extension not in config.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file format: {file_extension}. "
                   "Only PDF, DOCX and TXT are accepted."
        )

    file_location = ""
    try:
        file_location = await save_upload_file(file)
        raw_text = await extract_text_from_file(file_location)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        remove_file(file_location)

    text = clean_resume_text(raw_text)
    if not text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The resume does not contain any readable text."
        )
    return text


@app.post(
    "/extract-cv-data",
    response_model=ExtractionResponse,
    summary="Extracts candidate fields from a resume with pattern matching",
    responses={
        400: {"description": "Unsupported file format or unreadable resume"},
        409: {"description": "An upload is already being processed"},
        500: {"description": "Extraction unavailable"},
    }
)
async def extract_cv_data_endpoint(request: Request, file: UploadFile = File(...)):
    async with in_flight.guard("upload", caller_key(request)):
        text = await _read_resume(file)
        try:
            candidate = extract_cv_data_from_text(text)
        except ExtractionError as e:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ExtractionResponse(file_name=file.filename, raw_text=text, candidate=candidate, method="pattern")


@app.post(
    "/extract-cv-data/ai",
    response_model=ExtractionResponse,
    summary="Extracts candidate fields from a resume with the language model",
    responses={
        400: {"description": "Unsupported file format or unreadable resume"},
        409: {"description": "An upload is already being processed"},
        502: {"description": "The language model failed or replied with invalid JSON"},
    }
)
async def extract_cv_data_ai_endpoint(request: Request, file: UploadFile = File(...)):
    async with in_flight.guard("upload", caller_key(request)):
        text = await _read_resume(file)
        try:
            candidate = await extract_cv_data_with_llm(text)
        except ExtractionError as e:
            logger.error("AI extraction failed for %s: %s", file.filename, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="AI extraction failed. Please try again or fill the form manually."
            )

    return ExtractionResponse(file_name=file.filename, raw_text=text, candidate=candidate, method="llm")


@app.post("/resume-query", response_model=ResumeAnswer, summary="Asks the language model about a resume")
async def resume_query_endpoint(body: ResumeQuestion, request: Request):
    if not body.question.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A question is required.")
    if not body.resume_text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resume text is required.")

    async with in_flight.guard("resume-query", caller_key(request)):
        try:
            answer = await answer_resume_question(clean_resume_text(body.resume_text), body.question.strip())
        except AIServiceError as e:
            logger.error("Resume query failed: %s", e)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI query failed.")

    return ResumeAnswer(question=body.question.strip(), answer=answer)


# ===========================
# CANDIDATES
# ===========================

@app.post(
    "/candidates",
    response_model=CandidateRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Saves a new candidate",
)
async def create_candidate_endpoint(
    candidate: CandidateCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with in_flight.guard("save", caller_key(request)):
        try:
            return await repository.create_candidate(db, candidate)
        except SQLAlchemyError as e:
            logger.error("Saving candidate failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Save failed. The candidate could not be stored."
            )


@app.get("/candidates", response_model=CandidatePage, summary="Lists candidates, newest first")
async def list_candidates_endpoint(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(config.LIST_PAGE_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    try:
        items, total = await repository.list_candidates_page(db, search, page, page_size)
    except SQLAlchemyError as e:
        logger.error("Listing candidates failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not load candidates.")

    return CandidatePage(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


@app.get(
    "/candidates/{candidate_id}",
    response_model=CandidateRecord,
    responses={404: {"model": ErrorResponse, "description": "Candidate not found"}},
)
async def get_candidate_endpoint(candidate_id: str, db: AsyncSession = Depends(get_db)):
    candidate = await repository.get_candidate(db, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return candidate


@app.put("/candidates/{candidate_id}", response_model=CandidateRecord, summary="Replaces a candidate record")
async def update_candidate_endpoint(
    candidate_id: str,
    candidate: CandidateUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with in_flight.guard("edit", caller_key(request)):
        try:
            updated = await repository.update_candidate(db, candidate_id, candidate)
        except SQLAlchemyError as e:
            logger.error("Updating candidate %s failed: %s", candidate_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Update failed. The candidate could not be stored."
            )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return updated


# ===========================
# SEARCH
# ===========================

def _search_error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message, "timestamp": _now()},
    )


@app.api_route(
    "/search-candidates",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    summary="Searches candidates by free text and optional filters",
    response_model=SearchResponse,
    responses={
        400: {"model": SearchErrorResponse},
        405: {"model": SearchErrorResponse},
        409: {"description": "A search is already running for this caller"},
        500: {"model": SearchErrorResponse},
    },
)
async def search_candidates_endpoint(request: Request, db: AsyncSession = Depends(get_db)):
    if request.method != "POST":
        return _search_error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed", "Only POST is supported")

    try:
        body = await request.json()
    except ValueError:
        return _search_error(status.HTTP_400_BAD_REQUEST, "Invalid request", "Request body must be valid JSON")
    if not isinstance(body, dict):
        return _search_error(status.HTTP_400_BAD_REQUEST, "Invalid request", "Request body must be a JSON object")

    query = body.get("query")
    if not isinstance(query, str) or not query.strip():
        return _search_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            "Query parameter is required and must be a string"
        )

    raw_filters = body.get("filters")
    filters = None
    if raw_filters is not None:
        if not isinstance(raw_filters, dict):
            return _search_error(status.HTTP_400_BAD_REQUEST, "Invalid request", "Filters must be an object")
        try:
            filters = SearchFilters.model_validate(raw_filters)
        except ValidationError:
            return _search_error(status.HTTP_400_BAD_REQUEST, "Invalid request", "Filters are malformed")

    try:
        async with in_flight.guard("search", caller_key(request)):
            results = await repository.search_candidates(db, query, filters)
    except RequestInFlightError as e:
        return _search_error(status.HTTP_409_CONFLICT, "Request in progress", str(e))
    except SearchError as e:
        return _search_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Search failed", str(e))

    response = SearchResponse(
        data=[CandidateRecord.model_validate(c) for c in results],
        query=query,
        filters=filters.model_dump(exclude_none=True) if filters else {},
        timestamp=_now(),
    )
    return JSONResponse(content=response.model_dump(mode="json"))


@app.post(
    "/ai-search",
    response_model=AISearchResult,
    summary="Natural-language candidate search through the AI query service",
    responses={502: {"description": "The AI query service failed"}},
)
async def ai_search_endpoint(body: AISearchRequest, request: Request):
    if not body.query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required.")

    async with in_flight.guard("ai-search", caller_key(request)):
        try:
            return await search_candidates_with_ai(body.query.strip())
        except AIServiceError as e:
            logger.error("AI search failed: %s", e)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI search failed.")
