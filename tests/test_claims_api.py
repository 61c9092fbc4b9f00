import re


def create_claim(client, **body):
    response = client.post("/api/claims", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_claim_end_to_end(client):
    response = client.post("/api/claims", json={"description": "fender repair"})

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["totalCost"] == 0
    assert body["payments"] == []
    assert re.match(r"^\d{4}-\d{2}-\d{2}$", body["dateCreated"])
    assert re.match(r"^CLM-[0-9A-Z]+-[0-9A-Z]{4}$", body["id"])
    assert body["description"] == "fender repair"


def test_get_unknown_claim_is_404(client):
    response = client.get("/api/claims/CLM-UNKNOWN-0000")

    assert response.status_code == 404
    assert response.json() == {"error": "Claim not found"}


def test_get_after_create(client):
    created = create_claim(client, title="Hail", claimantName="Dana", lineOfBusiness="Auto")

    response = client.get(f"/api/claims/{created['id']}")

    assert response.status_code == 200
    fetched = response.json()
    assert fetched["id"] == created["id"]
    assert fetched["claimantName"] == "Dana"
    assert fetched["lineOfBusiness"] == "Auto"


def test_list_claims(client):
    assert client.get("/api/claims").json() == []

    first = create_claim(client, title="One")
    second = create_claim(client, title="Two")

    ids = [c["id"] for c in client.get("/api/claims").json()]
    assert sorted(ids) == sorted([first["id"], second["id"]])


def test_extra_fields_go_to_metadata(client):
    claim = create_claim(client, title="Roof", adjuster="Kim")
    assert claim["metadata"] == {"adjuster": "Kim"}


def test_server_fields_are_rejected(client):
    response = client.post("/api/claims", json={"title": "x", "status": "paid"})

    assert response.status_code == 400
    assert "status" in response.json()["error"]


def test_malformed_body_is_400(client):
    response = client.post(
        "/api/claims", content="not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_record_payments_updates_total(client):
    claim = create_claim(client, title="Flood")

    client.post(f"/api/claims/{claim['id']}/payments", json={"amount": 120.5})
    response = client.post(
        f"/api/claims/{claim['id']}/payments", json={"usdAmount": "79.50"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["totalCost"] == 200.0
    assert len(body["payments"]) == 2
    assert body["payments"][1]["status"] == "pending_signature"


def test_non_positive_payment_is_400(client):
    claim = create_claim(client)
    response = client.post(f"/api/claims/{claim['id']}/payments", json={"amount": 0})

    assert response.status_code == 400
    assert "greater than 0" in response.json()["error"]


def test_payment_on_unknown_claim_is_404(client):
    response = client.post("/api/claims/CLM-NOPE-0000/payments", json={"amount": 5})
    assert response.status_code == 404


def test_list_payments_with_status_filter(client):
    claim = create_claim(client)
    client.post(f"/api/claims/{claim['id']}/payments", json={"amount": 5})

    response = client.get(
        f"/api/claims/{claim['id']}/payments", params={"status": "executed"}
    )
    assert response.json() == {"claimId": claim["id"], "payments": [], "total": 0}

    all_payments = client.get(f"/api/claims/{claim['id']}/payments").json()
    assert all_payments["total"] == 1


def test_status_transitions(client):
    claim = create_claim(client)
    url = f"/api/claims/{claim['id']}/status"

    assert client.post(url, json={"status": "paid"}).status_code == 409
    assert client.post(url, json={"status": "approved"}).json()["status"] == "approved"

    paid = client.post(url, json={"status": "paid"}).json()
    assert paid["status"] == "paid"
    assert paid["dateSettled"] is not None

    # paid claims take no more payments
    response = client.post(f"/api/claims/{claim['id']}/payments", json={"amount": 1})
    assert response.status_code == 409


def test_unknown_status_value_is_400(client):
    claim = create_claim(client)
    response = client.post(f"/api/claims/{claim['id']}/status", json={"status": "lost"})
    assert response.status_code == 400


def test_persistence_failure_is_generic_500(client, monkeypatch):
    from services.document_store import DocumentStore
    from utils.errors import PersistenceError

    async def broken(self, collection, **filters):
        raise PersistenceError("connection refused to db-host:5432")

    monkeypatch.setattr(DocumentStore, "query", broken)

    response = client.get("/api/claims")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_snake_case_server_fields_are_rejected(client):
    response = client.post(
        "/api/claims", json={"total_cost": 999, "date_created": "1999-01-01"}
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert "total_cost" in error
    assert "date_created" in error
