# =============================================================================
# tests/test_middleware.py - Page Gate Tests
# =============================================================================
# This module contains tests for:
# - /me and /admin pages redirecting anonymous users to /login?next=
# - Members bounced from /admin to /me?error=forbidden
# - Paths that only share a prefix ("/messages", "/administer") not gated
# - Redis outages treated as "no session"
# =============================================================================

from unittest.mock import patch

import pytest
import redis

from app.middleware import _under
from lib.session_store import SessionStore


class TestUnder:
    """Test prefix matching on path segments."""

    @pytest.mark.parametrize("path, expected", [
        ("/me", True),
        ("/me/equipment", True),
        ("/messages", False),
        ("/meh/x", False),
    ])
    def test_member_prefix(self, path, expected):
        assert _under(path, "/me") is expected


class TestPageGate:
    """Test PageGateMiddleware through the page routes."""

    def test_anonymous_member_page(self, client):
        response = client.get("/me")

        assert response.status_code == 307
        assert response.headers["location"] == "/login?next=%2Fme"

    def test_anonymous_admin_subpage(self, client):
        response = client.get("/admin/party")

        assert response.status_code == 307
        assert response.headers["location"] == "/login?next=%2Fadmin%2Fparty"

    def test_member_page_signed_in(self, client, login, member_user):
        login(member_user)

        response = client.get("/me")

        assert response.status_code == 200
        assert "Ember" in response.text

    def test_member_denied_admin_page(self, client, login, member_user):
        login(member_user)

        response = client.get("/admin")

        assert response.status_code == 307
        assert response.headers["location"] == "/me?error=forbidden"

    def test_staff_reach_admin_page(self, client, login, head_user):
        login(head_user)

        response = client.get("/admin")

        assert response.status_code == 200
        assert "Guild 2" in response.text

    def test_login_and_api_not_gated(self, client):
        assert client.get("/login").status_code == 200
        # API routes answer with their own 401 instead of a redirect
        assert client.get("/api/me").status_code == 401

    def test_redis_outage_redirects_to_login(self, client, login, member_user):
        login(member_user)

        with patch.object(SessionStore, "get", side_effect=redis.ConnectionError("down")):
            response = client.get("/me")

        assert response.status_code == 307
        assert response.headers["location"].startswith("/login")


class TestLoginPage:
    """Test the login page error notice."""

    def test_known_error_shown(self, client):
        response = client.get("/login", params={"error": "not_in_guild"})

        assert "not a member of an Inferno guild" in response.text

    def test_unknown_error_ignored(self, client):
        response = client.get("/login", params={"error": "<script>"})

        assert "<script>" not in response.text
