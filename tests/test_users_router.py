# tests/test_users_router.py
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mentormesh.main import app
from mentormesh.db.session import engine, SessionLocal
from mentormesh.models import AvailabilitySlot, Base, User

client = TestClient(app)


def setup_module(module):
    Base.metadata.create_all(bind=engine)


def _clean_db():
    db: Session = SessionLocal()
    try:
        db.query(AvailabilitySlot).delete()
        db.query(User).delete()
        db.commit()
    finally:
        db.close()


MENTOR_PAYLOAD = {
    "full_name": "Barbara Liskov",
    "email": "Barbara@Example.com",
    "roles": ["mentor"],
    "mentor_profile": {
        "skills": ["Distributed Systems", " ", "Programming Languages"],
        "bio": "Abstraction, CLU and Byzantine fault tolerance.",
    },
}


def test_create_mentor_starts_pending_with_completion():
    _clean_db()

    resp = client.post("/users", json=MENTOR_PAYLOAD)
    assert resp.status_code == 201, resp.text
    user = resp.json()["data"]["user"]

    assert user["email"] == "barbara@example.com"
    assert user["roles"] == ["mentor"]
    assert user["mentor_profile"]["skills"] == ["Distributed Systems", "Programming Languages"]
    assert user["account_status"] == "pending"
    assert user["is_verified"] is False
    # name + email + skills + bio
    assert user["profile_completion"] == {"mentor": 82, "mentee": 0, "overall": 82}

    resp = client.get(f"/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["full_name"] == "Barbara Liskov"


def test_create_mentee_completion_counts_default_level():
    _clean_db()

    resp = client.post(
        "/users",
        json={
            "full_name": "Quinn Learner",
            "email": "quinn@example.com",
            "roles": ["mentee"],
            "mentee_profile": {"interests": ["Compilers"], "goals": "Ship a toy language"},
        },
    )
    assert resp.status_code == 201, resp.text
    user = resp.json()["data"]["user"]
    assert user["mentee_profile"]["current_level"] == "beginner"
    assert user["profile_completion"]["mentee"] == 92


def test_create_user_validation_and_duplicates():
    _clean_db()

    resp = client.post(
        "/users",
        json={"full_name": "X", "email": "x@example.com", "roles": ["mentor"]},
    )
    assert resp.status_code == 400
    errors = resp.json()["errors"]
    assert "Full name must be at least 2 characters" in errors
    assert "Skills are required for mentors" in errors
    assert "Bio is required for mentors and must be at least 10 characters" in errors

    resp = client.post("/users", json={"full_name": "No Roles", "email": "none@example.com"})
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["At least one role must be selected"]

    assert client.post("/users", json=MENTOR_PAYLOAD).status_code == 201
    resp = client.post("/users", json={**MENTOR_PAYLOAD, "email": "BARBARA@example.com"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


def test_update_profile_recomputes_completion():
    _clean_db()
    user_id = client.post("/users", json=MENTOR_PAYLOAD).json()["data"]["user"]["id"]

    resp = client.put(
        f"/users/{user_id}/profile",
        json={
            "mentor_profile": {"expertise": "Systems", "experience": 40},
            # ignored, the user holds no mentee role
            "mentee_profile": {"goals": "n/a"},
        },
    )
    assert resp.status_code == 200, resp.text
    user = resp.json()["data"]["user"]
    assert user["mentor_profile"]["experience"] == 40
    assert user["mentee_profile"]["goals"] is None
    assert user["profile_completion"]["mentor"] == 100

    resp = client.put(f"/users/{user_id}/profile", json={"mentor_profile": {"experience": -1}})
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Experience cannot be negative"]

    # rejected edits are not persisted
    resp = client.get(f"/users/{user_id}")
    assert resp.json()["data"]["user"]["mentor_profile"]["experience"] == 40


def test_add_role_and_overall_completion():
    _clean_db()
    user_id = client.post("/users", json=MENTOR_PAYLOAD).json()["data"]["user"]["id"]

    resp = client.post(
        f"/users/{user_id}/roles",
        json={"role": "mentee", "profile": {"interests": ["Databases"]}},
    )
    assert resp.status_code == 200, resp.text
    user = resp.json()["data"]["user"]
    assert user["roles"] == ["mentor", "mentee"]
    assert user["profile_completion"] == {"mentor": 82, "mentee": 67, "overall": 75}

    resp = client.post(f"/users/{user_id}/roles", json={"role": "mentee"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "precondition_failed"

    resp = client.post(f"/users/{user_id}/roles", json={"role": "admin"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_verify_suspend_reactivate():
    _clean_db()
    mentor_id = client.post("/users", json=MENTOR_PAYLOAD).json()["data"]["user"]["id"]
    mentee_id = client.post(
        "/users",
        json={"full_name": "Riley Learner", "email": "riley@example.com", "roles": ["mentee"]},
    ).json()["data"]["user"]["id"]

    resp = client.post(f"/users/mentors/{mentor_id}/verify")
    assert resp.status_code == 200
    user = resp.json()["data"]["user"]
    assert user["is_verified"] is True
    assert user["account_status"] == "active"

    resp = client.post(f"/users/mentors/{mentor_id}/verify")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Mentor is already verified"

    resp = client.post(f"/users/mentors/{mentee_id}/verify")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Mentor not found"

    resp = client.post(f"/users/{mentor_id}/suspend")
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["account_status"] == "suspended"

    # suspended mentors drop out of the directory
    resp = client.get("/availability/mentors/search")
    assert resp.json()["data"]["pagination"]["total_count"] == 0

    assert client.post(f"/users/{mentor_id}/suspend").status_code == 400

    resp = client.post(f"/users/{mentor_id}/reactivate")
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["account_status"] == "active"

    resp = client.post(f"/users/{mentee_id}/reactivate")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Only suspended users can be reactivated"

    assert client.get("/users/999999").status_code == 404


def test_create_user_rejects_malformed_email():
    _clean_db()

    for email in ("not-an-email", "a@b..com", "two@@example.com"):
        resp = client.post(
            "/users",
            json={"full_name": "Mal Formed", "email": email, "roles": ["mentee"]},
        )
        assert resp.status_code == 400, email
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["errors"][0].startswith("email")

    db: Session = SessionLocal()
    try:
        assert db.query(User).count() == 0
    finally:
        db.close()


def test_add_role_checks_profile_types():
    _clean_db()
    user_id = client.post(
        "/users",
        json={"full_name": "Morgan Both", "email": "morgan@example.com", "roles": ["mentee"]},
    ).json()["data"]["user"]["id"]

    resp = client.post(
        f"/users/{user_id}/roles",
        json={
            "role": "mentor",
            "profile": {
                "skills": ["Go"],
                "bio": "Backend services in Go for a decade.",
                "experience": "five",
            },
        },
    )
    assert resp.status_code == 400, resp.text
    body = resp.json()
    assert body["code"] == "validation_error"
    assert body["errors"][0].startswith("profile.experience")

    resp = client.post(
        f"/users/{user_id}/roles",
        json={
            "role": "mentor",
            "profile": {"skills": "python", "bio": "Backend services in Go for a decade."},
        },
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0].startswith("profile.skills")

    # nothing was stored by the rejected requests
    user = client.get(f"/users/{user_id}").json()["data"]["user"]
    assert user["roles"] == ["mentee"]
    assert user["mentor_profile"]["skills"] == []

    resp = client.post(
        f"/users/{user_id}/roles",
        json={
            "role": "mentor",
            "profile": {
                "skills": ["Python"],
                "bio": "Backend services in Go for a decade.",
                "experience": 5,
            },
        },
    )
    assert resp.status_code == 200, resp.text
    user = resp.json()["data"]["user"]
    assert user["roles"] == ["mentee", "mentor"]
    assert user["mentor_profile"]["skills"] == ["Python"]
    assert user["mentor_profile"]["experience"] == 5
