"""
Tests for health and version endpoints
"""
from fastapi import status
from sqlalchemy.exc import OperationalError

from risingsun.core.config import settings
from risingsun.core.constants import SERVICE_NAME, SYSTEM_CREDIT


def test_health_endpoint(client):
    response = client.get("/api/v1/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["service"] == SERVICE_NAME
    assert data["credit"] == SYSTEM_CREDIT


def test_health_reports_unreachable_database(client, db, monkeypatch):
    def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("could not connect"))

    monkeypatch.setattr(db, "execute", broken_execute)

    response = client.get("/api/v1/health")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "unavailable"


def test_version_endpoint_accessible_without_auth(client):
    response = client.get("/api/v1/version")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["service"] == SERVICE_NAME
    assert "version" in data
    assert data["env"] in ["local", "staging", "prod"]
    assert data["business_tz"] == settings.BUSINESS_TZ
    assert data["currency"] == settings.CURRENCY_SYMBOL
