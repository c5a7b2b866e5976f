from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services import CaseStore, DocumentCollection


class FakeClock:
    """Hands out strictly increasing UTC timestamps, one second apart."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_payload(device_id: str = "D1", **overrides) -> dict:
    payload = {
        "heartRate": 80,
        "temperature": 37,
        "spo2": 98,
        "gps": {"latitude": 1.0, "longitude": 2.0},
        "accelerometer": {"x": 0, "y": 0, "z": 0},
        "gyroscope": {"x": 0, "y": 0, "z": 0},
        "deviceId": device_id,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store() -> CaseStore:
    return CaseStore(DocumentCollection(), clock=FakeClock())


@pytest.fixture
def client(store):
    app.state.case_store = store
    yield TestClient(app)
    app.state.case_store = None
