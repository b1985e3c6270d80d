# tests/conftest.py
# Pytest fixtures. Run: pytest tests/ -v
# Each test gets its own SQLite database; no external service is ever called.

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

os.environ["AUTO_CREATE_TABLES"] = "0"
os.environ["AUTH_PROVIDER"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="cv-uploads-")
os.environ["OPENAI_API_KEY"] = ""
os.environ["PICA_SECRET_KEY"] = ""
os.environ["PICA_CONNECTION_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from main import app  # noqa: E402
from db.session import get_db  # noqa: E402
from models.candidate.model import Base, Candidate  # noqa: E402


def run(coro):
    return asyncio.run(coro)


def candidate_payload(**overrides) -> dict:
    data = {
        "name": "Jane Smith",
        "email": "jane.smith@example.com",
        "phone": "+1 555 010 2030",
        "total_experience": 4,
        "current_company": "Acme Corp",
        "primary_skills": "React, TypeScript",
        "college_marks": "82%",
        "year_passed_out": 2019,
    }
    data.update(overrides)
    return data


@pytest.fixture
def session_factory(tmp_path):
    # NullPool: TestClient runs the app on its own event loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'candidates.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(_create())
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    run(engine.dispose())


@pytest.fixture
def seed(session_factory):
    """ Inserts rows directly with controlled created_at values (oldest first). """
    def _seed(rows):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)

        async def _insert():
            async with session_factory() as session:
                candidates = []
                for i, row in enumerate(rows):
                    c = Candidate(**candidate_payload(**row))
                    c.created_at = c.updated_at = base + timedelta(minutes=i)
                    candidates.append(c)
                session.add_all(candidates)
                await session.commit()
                return [c.id for c in candidates]

        return run(_insert())
    return _seed


@pytest.fixture
def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    r = client.post("/auth/login", json={"email": "recruiter@example.com", "password": "secret"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}
