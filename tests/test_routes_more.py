# tests/test_routes_more.py
# -*- coding: utf-8 -*-
"""Error handling paths of the REST API"""

import os
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError

from promo_admin import create_app
from promo_admin.common import status
from promo_admin.models import DatabaseError, PromoCode

flask_app = create_app(
    {"SQLALCHEMY_DATABASE_URI": os.getenv("DATABASE_URI", "sqlite:///:memory:"), "TESTING": True}
)


def _without_propagation(func):
    """Run func with exception propagation off so Flask answers with 500"""
    prev_testing = flask_app.testing
    prev_propagate = flask_app.config.get("PROPAGATE_EXCEPTIONS", None)
    flask_app.testing = False
    flask_app.config["PROPAGATE_EXCEPTIONS"] = False
    try:
        return func()
    finally:
        flask_app.testing = prev_testing
        if prev_propagate is None:
            flask_app.config.pop("PROPAGATE_EXCEPTIONS", None)
        else:
            flask_app.config["PROPAGATE_EXCEPTIONS"] = prev_propagate


def test_internal_server_error_returns_json():
    """An unexpected exception in a handler is answered with a JSON 500"""
    client = flask_app.test_client()

    def call():
        with patch.object(PromoCode, "find", side_effect=RuntimeError("kaboom")):
            return client.get("/promo-codes/1")

    resp = _without_propagation(call)
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = resp.get_json()
    assert data["error"] == "Internal Server Error"
    assert "kaboom" not in data["message"]


def test_database_error_is_not_leaked():
    """A DatabaseError while computing stats is a 500 with a generic message"""
    client = flask_app.test_client()
    service = flask_app.extensions["promo_stats"]
    with patch.object(service, "_fetch_records", side_effect=DatabaseError("password=hunter2")):
        resp = client.get("/stats")
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = resp.get_json()
    assert data["message"] == "An unexpected error occurred."
    assert "hunter2" not in resp.get_data(as_text=True)


def test_unknown_route_returns_json_404():
    """Unknown URLs are answered with the uniform JSON payload"""
    client = flask_app.test_client()
    resp = client.get("/no-such-thing")
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    data = resp.get_json()
    assert data["status"] == status.HTTP_404_NOT_FOUND
    assert data["error"] == "Not Found"


def test_malformed_json_returns_400():
    """A body that is not valid JSON is a 400"""
    client = flask_app.test_client()
    resp = client.post("/promo-codes", data="{not json", content_type="application/json")
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.get_json()["error"] == "Bad Request"


def test_each_app_has_its_own_stats_service():
    """Every app built by the factory gets a separate statistics service"""
    other = create_app({"SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:", "TESTING": True})
    assert other.extensions["promo_stats"] is not flask_app.extensions["promo_stats"]


def test_bulk_create_unique_conflict_is_400():
    """A code stored by a concurrent import is reported as a 400, not a 500"""
    client = flask_app.test_client()
    conflict = IntegrityError("INSERT INTO promo_codes", {}, Exception("UNIQUE constraint failed"))
    with patch("promo_admin.models.db.session.commit", side_effect=conflict):
        resp = client.post(
            "/promo-codes", json={"codes": ["RACE0002"], "type": "starter", "region": "emea"}
        )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert "already exist" in resp.get_json()["message"]
