import pytest

from app.clubdesk.db import session_scope
from app.clubdesk.models import AuditEvent
from app.clubdesk.modules.clubs.models import Club, ClubValidationError
from app.clubdesk.modules.clubs.service import normalize_club_payload, validate_club_payload
from conftest import api_token, bearer, csrf_token, login


def test_club_without_name_fails_validation(app):
    with pytest.raises(ClubValidationError):
        with session_scope(app) as s:
            s.add(Club(description="No name here"))
            s.flush()

    with session_scope(app) as s:
        assert s.query(Club).count() == 0


def test_blank_name_fails_validation():
    with pytest.raises(ClubValidationError):
        Club(name="   ").validate()


def test_club_with_only_name_has_absent_optionals(app):
    with session_scope(app) as s:
        s.add(Club(name="XL Soccer"))

    with session_scope(app) as s:
        club = s.query(Club).one()
        assert club.name == "XL Soccer"
        assert club.description is None
        assert club.location is None
        assert club.contact_email is None
        assert club.contact_phone is None


def test_to_dict_includes_virtual_fields(app):
    with session_scope(app) as s:
        club = Club(name="XL Soccer", location="Austin", contact_email="info@xl.test")
        s.add(club)
        s.flush()
        data = club.to_dict()
        club_id = club.id

    assert data["id"] == str(club_id)
    assert data["displayName"] == "XL Soccer (Austin)"
    assert data["contactEmail"] == "info@xl.test"
    assert data["contactPhone"] is None


def test_to_dict_without_virtuals():
    data = Club(name="XL Soccer").to_dict(virtuals=False)
    assert "id" not in data
    assert "displayName" not in data
    assert data == {
        "name": "XL Soccer",
        "description": None,
        "location": None,
        "contactEmail": None,
        "contactPhone": None,
    }


def test_normalize_accepts_camel_and_snake_case():
    assert normalize_club_payload({"contactEmail": " a@b.co ", "location": ""}) == {
        "contact_email": "a@b.co",
        "location": None,
    }
    assert normalize_club_payload({"contact_phone": "555"}) == {"contact_phone": "555"}


def test_validate_payload_partial_allows_missing_name():
    assert validate_club_payload({"location": "Austin"}, partial=True) == []
    assert validate_club_payload({"location": "Austin"}) == ["Name is required."]
    assert validate_club_payload({"name": None}, partial=True) == ["Name is required."]


def test_api_list_is_public(client, app):
    with session_scope(app) as s:
        s.add_all([Club(name="Beta FC"), Club(name="Alpha FC")])

    r = client.get("/api/v1/clubs")
    assert r.status_code == 200
    assert r.json["results"] == 2
    assert [c["name"] for c in r.json["data"]] == ["Alpha FC", "Beta FC"]


def test_api_create_requires_token(client):
    r = client.post("/api/v1/clubs", json={"name": "XL Soccer"})
    assert r.status_code == 401


def test_api_create_requires_admin(client):
    token = api_token(client, "coach@example.com", "pw-coach-123")
    r = client.post("/api/v1/clubs", json={"name": "XL Soccer"}, headers=bearer(token))
    assert r.status_code == 403


@pytest.mark.parametrize("body", [["name"], "XL Soccer", 42, None])
def test_api_rejects_bodies_that_are_not_objects(client, app, body):
    token = api_token(client)
    r = client.post("/api/v1/clubs", json=body, headers=bearer(token))
    assert r.status_code == 400
    assert r.json["status"] == "fail"

    with session_scope(app) as s:
        s.add(Club(name="Gamma FC"))
    club_id = client.get("/api/v1/clubs").json["data"][0]["id"]
    r = client.patch(f"/api/v1/clubs/{club_id}", json=["location"], headers=bearer(token))
    assert r.status_code == 400
    assert r.json["status"] == "fail"


def test_nested_values_do_not_become_names():
    assert normalize_club_payload({"name": {"first": "XL"}, "location": ["Austin"]}) == {"name": None, "location": None}
    assert validate_club_payload({"name": None}) == ["Name is required."]


def test_api_crud_round(client, app):
    token = api_token(client)

    r = client.post("/api/v1/clubs", json={}, headers=bearer(token))
    assert r.status_code == 400

    r = client.post(
        "/api/v1/clubs",
        json={"name": "XL Soccer", "contactPhone": "512-555-0100"},
        headers=bearer(token),
    )
    assert r.status_code == 201
    club_id = r.json["data"]["id"]
    assert r.json["data"]["contactPhone"] == "512-555-0100"
    assert r.json["data"]["description"] is None

    r = client.patch(f"/api/v1/clubs/{club_id}", json={"location": "Austin"}, headers=bearer(token))
    assert r.status_code == 200
    assert r.json["data"]["location"] == "Austin"
    assert r.json["data"]["name"] == "XL Soccer"

    r = client.patch(f"/api/v1/clubs/{club_id}", json={"name": ""}, headers=bearer(token))
    assert r.status_code == 400

    r = client.get(f"/api/v1/clubs/{club_id}")
    assert r.json["data"]["displayName"] == "XL Soccer (Austin)"

    r = client.delete(f"/api/v1/clubs/{club_id}", headers=bearer(token))
    assert r.status_code == 204

    r = client.get(f"/api/v1/clubs/{club_id}")
    assert r.status_code == 404

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id.asc()).all()]
    assert actions.count("club.create") == 1
    assert actions.count("club.edit") == 1
    assert actions.count("club.delete") == 1


def test_admin_pages_create_and_list(client, app):
    login(client)
    token = csrf_token(client)

    r = client.post(
        "/admin/clubs/new",
        data={"name": "Westside United", "location": "Round Rock", "csrf_token": token},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"Westside United" in r.data
    assert b"Club created." in r.data

    with session_scope(app) as s:
        club = s.query(Club).filter(Club.name == "Westside United").one()
        assert club.location == "Round Rock"


def test_admin_create_without_name_flashes_error(client, app):
    login(client)
    token = csrf_token(client)
    r = client.post("/admin/clubs/new", data={"location": "Austin", "csrf_token": token}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Name is required." in r.data
    with session_scope(app) as s:
        assert s.query(Club).count() == 0


def test_coach_can_list_but_not_create(client):
    login(client, "coach@example.com", "pw-coach-123")
    assert client.get("/admin/clubs").status_code == 200
    assert client.get("/admin/clubs/new").status_code == 403
