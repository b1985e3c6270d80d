# tests/test_candidates.py
# Candidate create / read / replace / list and the pattern-extraction upload.

from conftest import candidate_payload


def test_create_requires_session(client):
    r = client.post("/candidates", json=candidate_payload())
    assert r.status_code == 401


def test_create_then_read_back_round_trip(client, auth_headers):
    payload = candidate_payload(primary_skills="React,  react, Node.js, , Python")
    created = client.post("/candidates", json=payload, headers=auth_headers)
    assert created.status_code == 201
    record = created.json()
    assert record["id"]
    assert record["primary_skills"] == "React, Node.js, Python"

    fetched = client.get(f"/candidates/{record['id']}")
    assert fetched.status_code == 200
    for field in ("id", "name", "email", "phone", "total_experience", "current_company",
                  "primary_skills", "college_marks", "year_passed_out"):
        assert fetched.json()[field] == record[field], field


def test_skills_list_is_accepted_and_joined(client, auth_headers):
    r = client.post(
        "/candidates",
        json=candidate_payload(primary_skills=["AWS", "aws", "Docker"]),
        headers=auth_headers,
    )
    assert r.status_code == 201
    assert r.json()["primary_skills"] == "AWS, Docker"


def test_validation_errors_are_422(client, auth_headers):
    bad = [
        candidate_payload(name="   "),
        candidate_payload(email="not-an-email"),
        candidate_payload(phone="12345"),
        candidate_payload(total_experience=-1),
        candidate_payload(year_passed_out=1985),
        candidate_payload(total_experience="five"),
    ]
    for payload in bad:
        r = client.post("/candidates", json=payload, headers=auth_headers)
        assert r.status_code == 422, payload


def test_full_replace_updates_every_field(client, auth_headers):
    record = client.post("/candidates", json=candidate_payload(), headers=auth_headers).json()
    replacement = candidate_payload(
        name="Jane Doe",
        email="jane.doe@example.com",
        current_company="",
        primary_skills="Go, Rust",
        total_experience=6,
    )

    r = client.put(f"/candidates/{record['id']}", json=replacement, headers=auth_headers)

    assert r.status_code == 200
    updated = r.json()
    assert updated["id"] == record["id"]
    assert updated["name"] == "Jane Doe"
    assert updated["current_company"] == ""
    assert updated["primary_skills"] == "Go, Rust"
    assert updated["total_experience"] == 6
    assert updated["updated_at"] >= record["updated_at"]


def test_update_requires_full_record(client, auth_headers):
    record = client.post("/candidates", json=candidate_payload(), headers=auth_headers).json()
    r = client.put(f"/candidates/{record['id']}", json={"name": "Only Name"}, headers=auth_headers)
    assert r.status_code == 422


def test_update_and_get_unknown_id_are_404(client, auth_headers):
    assert client.get("/candidates/does-not-exist").status_code == 404
    r = client.put("/candidates/does-not-exist", json=candidate_payload(), headers=auth_headers)
    assert r.status_code == 404


def test_list_is_newest_first_and_paginated(client, seed):
    seed([{"name": f"Person Number{i}"} for i in range(12)])

    first = client.get("/candidates").json()
    assert first["total"] == 12
    assert first["page_size"] == 10
    assert first["total_pages"] == 2
    assert first["items"][0]["name"] == "Person Number11"

    second = client.get("/candidates", params={"page": 2}).json()
    assert [c["name"] for c in second["items"]] == ["Person Number1", "Person Number0"]


def test_list_search_filters_case_insensitively(client, seed):
    seed([
        {"name": "Alice Brown", "current_company": "Globex"},
        {"name": "Bob Green", "current_company": "Initech"},
    ])
    page = client.get("/candidates", params={"search": "GLOBEX"}).json()
    assert page["total"] == 1
    assert page["items"][0]["name"] == "Alice Brown"


# =====================
# UPLOAD + PATTERN EXTRACTION
# =====================

def test_upload_txt_returns_draft(client):
    resume = (
        b"John Doe\nPage 1\nPhone: 98765 43210\nEmail: john.doe@email.com\n"
        b"6 years of experience with React and Python\nB.E. 2016, 72%\n"
    )
    r = client.post("/extract-cv-data", files={"file": ("john.txt", resume, "text/plain")})

    assert r.status_code == 200
    body = r.json()
    assert body["method"] == "pattern"
    assert "Page 1" not in body["raw_text"]
    draft = body["candidate"]
    assert draft["name"] == "John Doe"
    assert draft["email"] == "john.doe@email.com"
    assert draft["phone"] == "9876543210"
    assert draft["total_experience"] == "6"
    assert draft["primary_skills"] == "React, Python"
    assert draft["college_marks"] == "72%"
    assert draft["year_passed_out"] == "2016"
    assert draft["current_company"] == ""


def test_upload_rejects_unsupported_format(client):
    r = client.post("/extract-cv-data", files={"file": ("cv.exe", b"MZ", "application/octet-stream")})
    assert r.status_code == 400


def test_upload_rejects_empty_text(client):
    r = client.post("/extract-cv-data", files={"file": ("cv.txt", b"  \n Page 3 \n", "text/plain")})
    assert r.status_code == 400
