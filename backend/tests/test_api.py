from app.main import app
from app.services import CaseStore, StoreError
from conftest import make_payload


UNKNOWN_ID = "00000000-0000-4000-8000-000000000000"


def test_root_banner(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Rescue Service API is running"


def test_health_reports_case_counts(client):
    client.post("/api/cases", json=make_payload("A"))
    accepted = client.post("/api/cases", json=make_payload("B")).json()["caseId"]
    client.post(f"/api/cases/{accepted}/accept")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "cases": 2, "pendingCases": 1}


def test_ingest_replaces_pending_case_for_same_device(client):
    payload = make_payload("D1", gps={"lat": 1, "lng": 2})

    first = client.post("/api/cases", json=payload)
    assert first.status_code == 200
    assert first.json()["message"] == "Case data saved successfully"
    assert first.json()["removedPreviousCases"] is False
    assert first.json()["removedCount"] == 0

    second = client.post("/api/cases", json=payload)
    assert second.status_code == 200
    assert second.json()["removedPreviousCases"] is True
    assert second.json()["removedCount"] == 1

    cases = client.get("/api/cases/device/D1").json()
    assert len(cases) == 1
    assert cases[0]["id"] == second.json()["caseId"]
    assert cases[0]["status"] == "none"
    assert cases[0]["deviceId"] == "D1"
    assert cases[0]["heartRate"] == 80
    assert cases[0]["gps"] == {"lat": 1, "lng": 2}


def test_ingest_missing_field_is_400(client):
    payload = make_payload()
    del payload["gyroscope"]

    response = client.post("/api/cases", json=payload)

    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]
    assert client.get("/api/cases").json() == []


def test_ingest_non_object_body_is_400(client):
    response = client.post("/api/cases", json=[1, 2, 3])

    assert response.status_code == 400
    assert "error" in response.json()


def test_listing_endpoints(client):
    ids = [client.post("/api/cases", json=make_payload(d)).json()["caseId"] for d in ("A", "B", "C")]
    client.post(f"/api/cases/{ids[0]}/accept")
    client.post(f"/api/cases/{ids[1]}/reject")

    assert [c["id"] for c in client.get("/api/cases").json()] == [ids[2], ids[1], ids[0]]
    assert [c["id"] for c in client.get("/api/cases/pending").json()] == [ids[2]]
    assert [c["id"] for c in client.get("/api/cases/processed").json()] == [ids[1], ids[0]]
    assert client.get("/api/cases/device/nobody").json() == []


def test_accept_and_reject(client):
    case_id = client.post("/api/cases", json=make_payload()).json()["caseId"]

    accepted = client.post(f"/api/cases/{case_id}/accept")
    assert accepted.status_code == 200
    assert accepted.json()["message"] == "Case accepted successfully"
    assert accepted.json()["case"]["status"] == "accepted"
    assert accepted.json()["case"]["id"] == case_id

    rejected = client.post(f"/api/cases/{case_id}/reject")
    assert rejected.status_code == 200
    assert rejected.json()["message"] == "Case rejected successfully"
    assert rejected.json()["case"]["status"] == "rejected"


def test_delete_case(client):
    case_id = client.post("/api/cases", json=make_payload()).json()["caseId"]

    response = client.delete(f"/api/cases/{case_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Case deleted successfully", "caseId": case_id}
    assert client.get("/api/cases").json() == []


def test_unknown_case_is_404(client):
    client.post("/api/cases", json=make_payload())

    for response in (
        client.post(f"/api/cases/{UNKNOWN_ID}/accept"),
        client.post(f"/api/cases/{UNKNOWN_ID}/reject"),
        client.delete(f"/api/cases/{UNKNOWN_ID}"),
    ):
        assert response.status_code == 404
        assert response.json() == {"error": "Case not found"}

    cases = client.get("/api/cases").json()
    assert len(cases) == 1
    assert cases[0]["status"] == "none"


def test_buzzer_status(client):
    idle = client.get("/api/buzzer-status").json()
    assert idle == {"buzzerActive": False, "pendingCasesCount": 0, "cases": []}

    case_id = client.post("/api/cases", json=make_payload("D7")).json()["caseId"]

    active = client.get("/api/buzzer-status").json()
    assert active["buzzerActive"] is True
    assert active["pendingCasesCount"] == 1
    assert active["cases"][0]["id"] == case_id
    assert active["cases"][0]["deviceId"] == "D7"
    assert set(active["cases"][0]) == {"id", "deviceId", "timestamp"}

    client.post(f"/api/cases/{case_id}/accept")
    assert client.get("/api/buzzer-status").json()["buzzerActive"] is False


class FailingStore(CaseStore):
    def __init__(self):
        pass

    async def list_all(self):
        raise StoreError("Error retrieving cases: connection refused")


def test_store_error_is_500(client):
    app.state.case_store = FailingStore()

    response = client.get("/api/cases")

    assert response.status_code == 500
    assert response.json() == {"error": "Error retrieving cases: connection refused"}


def test_store_not_started_is_500(client):
    app.state.case_store = None

    response = client.get("/api/cases/pending")

    assert response.status_code == 500
    assert response.json() == {"error": "Server not fully started yet"}
