# config.py
import os
from typing import List

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# ==================================
# DATABASE
# ==================================
DATABASE_URL = os.getenv("DATABASE_URL_PYTHON", "sqlite+aiosqlite:///./candidates.db")
DB_SSL = _as_bool(os.getenv("DB_SSL"), default=DATABASE_URL.startswith("postgresql"))
AUTO_CREATE_TABLES = _as_bool(os.getenv("AUTO_CREATE_TABLES"), default=True)
CANDIDATES_TABLE = os.getenv("CANDIDATES_TABLE", "hr_solns_app")

# ==================================
# EXTRACTION / SEARCH
# ==================================
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploaded_cvs")
ALLOWED_EXTENSIONS = [".pdf", ".docx", ".txt"]
MAX_RESUME_CHARS = int(os.getenv("MAX_RESUME_CHARS", "5000"))
SEARCH_RESULT_LIMIT = int(os.getenv("SEARCH_RESULT_LIMIT", "50"))
LIST_PAGE_SIZE = int(os.getenv("LIST_PAGE_SIZE", "10"))

# ==================================
# LLM (OpenAI)
# ==================================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.1"))

# ==================================
# AI QUERY SERVICE (PicaOS)
# ==================================
PICA_SECRET_KEY = os.getenv("PICA_SECRET_KEY")
PICA_CONNECTION_KEY = os.getenv("PICA_CONNECTION_KEY")
PICA_QUERY_URL = os.getenv("PICA_QUERY_URL", "https://api.picaos.com/v1/ai/query")
AI_SEARCH_TABLE = os.getenv("AI_SEARCH_TABLE", CANDIDATES_TABLE)
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# ==================================
# AUTH
# ==================================
AUTH_PROVIDER = os.getenv("AUTH_PROVIDER", "local")  # "local" | "remote"
AUTH_SERVICE_URL = os.getenv("AUTH_SERVICE_URL", "")

# ==================================
# HTTP
# ==================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# Only honour X-Forwarded-For when the API sits behind a proxy that overwrites it
TRUST_PROXY_HEADERS = _as_bool(os.getenv("TRUST_PROXY_HEADERS"))
# Anonymous browser sessions send a stable id here so users behind one NAT do not block each other
CLIENT_ID_HEADER = os.getenv("CLIENT_ID_HEADER", "X-Client-Id")
CORS_ORIGINS: List[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]


def add_cors_middleware(app: FastAPI) -> None:
    """ Allows the browser front-end (any origin by default) to call the API. """
    allow_all = "*" in CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else CORS_ORIGINS,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", CLIENT_ID_HEADER],
    )
