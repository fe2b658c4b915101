"""Tests for GET /oauth2callback."""

from unittest.mock import AsyncMock, patch

from core.exceptions import CalendarAuthFailure, PersistenceFailure


FRONTEND = "http://localhost:5173"


def _callback(client, **params):
    return client.get("/oauth2callback", params=params, follow_redirects=False)


class TestOAuthCallback:
    def test_success_redirects_connected(self, client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        with patch(
            "web_api.routes.oauth.complete_calendar_sync",
            AsyncMock(return_value={"user_id": 1, "exam_id": 3, "event_id": "evt-1"}),
        ) as mock_complete:
            response = _callback(client, code="auth-code", state="signed-state")

        assert response.status_code in (302, 307)
        assert response.headers["location"] == f"{FRONTEND}/?calendar=connected"
        mock_complete.assert_awaited_once_with("auth-code", "signed-state")

    def test_failed_insert_still_connected(self, client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        with patch(
            "web_api.routes.oauth.complete_calendar_sync",
            AsyncMock(return_value={"user_id": 1, "exam_id": 3, "event_id": None}),
        ):
            response = _callback(client, code="auth-code", state="signed-state")

        assert response.headers["location"] == (
            f"{FRONTEND}/?calendar=connected&event=failed"
        )

    def test_bad_state_redirects_error(self, client, monkeypatch):
        monkeypatch.setenv("FRONTEND_URL", "https://exams.example.org")
        with patch(
            "web_api.routes.oauth.complete_calendar_sync",
            AsyncMock(side_effect=CalendarAuthFailure("invalid_state", "bad signature")),
        ):
            response = _callback(client, code="auth-code", state="tampered")

        assert response.headers["location"] == (
            "https://exams.example.org/?calendar=error&reason=invalid_state"
        )

    def test_consent_declined(self, client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        with patch(
            "web_api.routes.oauth.complete_calendar_sync", AsyncMock()
        ) as mock_complete:
            response = _callback(client, error="access_denied", state="signed-state")

        assert response.headers["location"] == (
            f"{FRONTEND}/?calendar=error&reason=access_denied"
        )
        mock_complete.assert_not_called()

    def test_database_error_redirects(self, client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        with patch(
            "web_api.routes.oauth.complete_calendar_sync",
            AsyncMock(side_effect=PersistenceFailure("down")),
        ):
            response = _callback(client, code="auth-code", state="signed-state")

        assert response.headers["location"] == (
            f"{FRONTEND}/?calendar=error&reason=server_error"
        )

    def test_missing_signing_key_redirects_error(self, client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        with patch("core.calendar.state.JWT_SECRET", None):
            response = _callback(client, code="auth-code", state="signed-state")

        assert response.headers["location"] == (
            f"{FRONTEND}/?calendar=error&reason=not_configured"
        )
