from unittest.mock import Mock

from sqlalchemy.exc import OperationalError

from linkapi.database.session import get_db


def test_health_ok(client):
    res = client.get("/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["error"] is None
    assert body["checked_at"]


def test_health_degraded_when_database_fails(app, client):
    broken = Mock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    app.dependency_overrides[get_db] = lambda: broken

    res = client.get("/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "degraded"
    assert body["database"] == "error"
