import pytest

from .conftest import ADMIN, auth_headers, client

REGISTRATION = {
    "product_code": "SKU-1",
    "name": "T-Shirt",
    "location": "Gujarat, IN",
    "certifications": "GOTS",
    "carbon_footprint": 100,
    "working_conditions": "Fair Trade",
    "fair_wages_paid": 500,
}


def authorize(client, principal, role):
    resp = client.post("/api/v1/stakeholders/",
                       json={"principal": principal, "role": role},
                       headers=auth_headers(ADMIN))
    assert resp.status_code == 201, resp.text
    return resp.json()


def register(client, principal, **overrides):
    resp = client.post("/api/v1/products/", json={**REGISTRATION, **overrides},
                       headers=auth_headers(principal))
    assert resp.status_code == 201, resp.text
    return resp.json()["handle"]


def test_index_and_readiness(client):
    assert client.get("/api/v1/").json() == {"status": "API is running"}
    resp = client.get("/api/v1/readiness")
    assert resp.status_code == 200
    assert resp.json()["database"] == "online"


def test_admin_is_initialized_on_startup(client):
    resp = client.get(f"/api/v1/stakeholders/{ADMIN}")
    assert resp.status_code == 200
    assert resp.json() == {
        "principal": ADMIN, "is_authorized": True, "is_admin": True, "role": "Admin"
    }


def test_stakeholder_lifecycle(client):
    authorize(client, "mill", "Manufacturer")

    listing = client.get("/api/v1/stakeholders/").json()
    assert {s["principal"] for s in listing} == {ADMIN, "mill"}

    again = client.post("/api/v1/stakeholders/",
                        json={"principal": "mill", "role": "Manufacturer"},
                        headers=auth_headers(ADMIN))
    assert again.status_code == 409
    assert again.json()["code"] == "already_authorized"

    resp = client.delete("/api/v1/stakeholders/mill", headers=auth_headers(ADMIN))
    assert resp.status_code == 204
    assert client.get("/api/v1/stakeholders/mill").json()["is_authorized"] is False

    resp = client.delete("/api/v1/stakeholders/mill", headers=auth_headers(ADMIN))
    assert resp.status_code == 409
    assert resp.json()["code"] == "not_authorized"


def test_admin_cannot_be_revoked(client):
    resp = client.delete(f"/api/v1/stakeholders/{ADMIN}", headers=auth_headers(ADMIN))
    assert resp.status_code == 409
    assert resp.json()["code"] == "cannot_revoke_admin"


def test_non_admin_cannot_authorize(client):
    authorize(client, "mill", "Manufacturer")
    resp = client.post("/api/v1/stakeholders/",
                       json={"principal": "farm", "role": "Farmer"},
                       headers=auth_headers("mill"))
    assert resp.status_code == 403
    assert resp.json()["code"] == "unauthorized"


def test_empty_role_is_rejected(client):
    resp = client.post("/api/v1/stakeholders/",
                       json={"principal": "farm", "role": ""},
                       headers=auth_headers(ADMIN))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_role"


def test_mutations_require_a_valid_token(client):
    resp = client.post("/api/v1/products/", json=REGISTRATION)
    assert resp.status_code == 401

    resp = client.post("/api/v1/products/", json=REGISTRATION,
                       headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_full_journey_over_http(client):
    authorize(client, "P", "Manufacturer")
    handle = register(client, "P")
    assert handle.startswith("0x") and len(handle) == 66

    assert client.get(f"/api/v1/products/{handle}/journey-length").json()[
        "journey_length"] == 1
    assert client.get(f"/api/v1/products/{handle}/carbon-footprint").json()[
        "total_carbon_footprint"] == 100

    resp = client.post(f"/api/v1/products/{handle}/stages",
                       json={"stage": "manufacturing", "location": "Surat, IN",
                             "carbon_footprint": 50, "fair_wages_paid": 200},
                       headers=auth_headers("P"))
    assert resp.status_code == 201, resp.text
    assert resp.json()["stage"] == "manufacturing"
    assert resp.json()["sequence"] == 1

    summary = client.get(f"/api/v1/products/{handle}/summary").json()
    assert summary == {
        "handle": handle,
        "current_stage": "manufacturing",
        "journey_length": 2,
        "total_carbon_footprint": 150,
        "total_fair_wages": 700,
    }
    assert client.get(f"/api/v1/products/{handle}/fair-wages").json()[
        "total_fair_wages"] == 700

    backwards = client.post(f"/api/v1/products/{handle}/stages",
                            json={"stage": "raw_material"},
                            headers=auth_headers("P"))
    assert backwards.status_code == 409
    assert backwards.json()["code"] == "invalid_transition"

    provenance = client.get(f"/api/v1/products/{handle}").json()
    assert provenance["product"]["current_stage"] == "manufacturing"
    assert [r["stage"] for r in provenance["journey"]] == ["raw_material", "manufacturing"]
    assert provenance["journey"][1]["location"] == "Surat, IN"


def test_stage_by_ordinal_and_out_of_range(client):
    authorize(client, "P", "Manufacturer")
    handle = register(client, "P")

    resp = client.post(f"/api/v1/products/{handle}/stages", json={"stage": 4},
                       headers=auth_headers("P"))
    assert resp.status_code == 201
    assert resp.json()["stage"] == "retail"

    resp = client.post(f"/api/v1/products/{handle}/stages", json={"stage": 9},
                       headers=auth_headers("P"))
    assert resp.status_code == 409
    assert resp.json()["code"] == "invalid_transition"


@pytest.mark.parametrize("stage", [True, 2.5, None, ["retail"]])
def test_stage_of_wrong_json_type_is_invalid_transition(client, stage):
    authorize(client, "P", "Manufacturer")
    handle = register(client, "P")

    resp = client.post(f"/api/v1/products/{handle}/stages", json={"stage": stage},
                       headers=auth_headers("P"))
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "invalid_transition"

    summary = client.get(f"/api/v1/products/{handle}/summary").json()
    assert summary["current_stage"] == "raw_material"
    assert client.get(f"/api/v1/products/{handle}/journey-length").json()["journey_length"] == 1


def test_unauthorized_register_leaves_count(client):
    resp = client.post("/api/v1/products/", json=REGISTRATION, headers=auth_headers("Q"))
    assert resp.status_code == 403
    assert resp.json()["code"] == "unauthorized"
    assert client.get("/api/v1/products/count").json() == {"product_count": 0}


def test_invalid_registration_input(client):
    authorize(client, "P", "Manufacturer")
    resp = client.post("/api/v1/products/", json={**REGISTRATION, "name": ""},
                       headers=auth_headers("P"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"

    resp = client.post("/api/v1/products/",
                       json={**REGISTRATION, "carbon_footprint": -10},
                       headers=auth_headers("P"))
    assert resp.status_code == 400


def test_unknown_product_is_404(client):
    for path in ("", "/summary", "/carbon-footprint", "/fair-wages", "/journey-length"):
        resp = client.get(f"/api/v1/products/0xmissing{path}")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"


def test_event_feed(client):
    authorize(client, "P", "Manufacturer")
    handle = register(client, "P")

    events = client.get("/api/v1/events/").json()
    assert [e["event_type"] for e in events] == [
        "StakeholderAuthorized", "StakeholderAuthorized",
        "ProductRegistered", "StageUpdated",
    ]
    assert events[2]["payload"] == {"handle": handle, "name": "T-Shirt", "registrar": "P"}

    newer = client.get("/api/v1/events/", params={"after_id": events[2]["id"]}).json()
    assert [e["event_type"] for e in newer] == ["StageUpdated"]


def test_qr_code_points_at_public_trail(client):
    from app.core.config import settings

    authorize(client, "P", "Manufacturer")
    handle = register(client, "P")

    resp = client.post(f"/api/v1/products/{handle}/qr-code")
    assert resp.status_code == 200
    body = resp.json()
    assert body["target_url"].endswith(f"/api/v1/products/{handle}")
    assert body["qr_code_url"].endswith(f"/static/qrcodes/{handle}.png")
    assert (settings.static_dir / "qrcodes" / f"{handle}.png").exists()

    assert client.post("/api/v1/products/0xmissing/qr-code").status_code == 404
