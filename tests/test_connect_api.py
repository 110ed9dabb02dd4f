"""Tests for the Connect account endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from ebar.api.factory import create_app
from ebar.stripe.client import StripeAccountMissingError, StripeCallError

from helpers import make_account


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def stripe_client():
    mock = MagicMock()
    mock.retrieve_account.return_value = make_account("acct_owner_1")
    with patch("ebar.api.routes.connect._get_stripe_client", return_value=mock):
        yield mock


@pytest.fixture
def db():
    mock = MagicMock()
    with patch("ebar.api.routes.connect._get_db", return_value=mock):
        yield mock


class TestGetConnectAccount:
    def test_returns_flags(self, client, stripe_client):
        response = client.get("/api/get-connect-account", params={"accountId": "acct_owner_1"})

        assert response.status_code == 200
        body = response.json()
        assert body["isOnboarded"] is True
        assert body["status"] == "active"
        assert body["chargesEnabled"] is True
        assert body["businessProfile"] == {"name": "Sunset Beach Bar"}

    def test_requires_account_id(self, client, stripe_client):
        response = client.get("/api/get-connect-account")
        assert response.status_code == 400
        assert response.json() == {"error": "Account ID required"}

    def test_missing_account_is_404(self, client, stripe_client):
        stripe_client.retrieve_account.side_effect = StripeAccountMissingError(code="resource_missing")
        response = client.get("/api/get-connect-account", params={"accountId": "acct_gone"})
        assert response.status_code == 404

    def test_stripe_failure_is_500(self, client, stripe_client):
        stripe_client.retrieve_account.side_effect = StripeCallError(details="boom")
        response = client.get("/api/get-connect-account", params={"accountId": "acct_owner_1"})
        assert response.status_code == 500
        assert response.json()["details"] == "boom"

    def test_post_not_allowed(self, client):
        assert client.post("/api/get-connect-account", json={}).status_code == 405


class TestLinks:
    def test_account_link(self, client, stripe_client, monkeypatch):
        monkeypatch.setenv("FRONTEND_URL", "https://ebar.example.com")
        stripe_client.create_account_link.return_value = "https://connect.stripe.com/setup/x"

        response = client.post(
            "/api/create-account-link", json={"accountId": "acct_owner_1", "barId": "bar-1"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "accountId": "acct_owner_1",
            "onboardingUrl": "https://connect.stripe.com/setup/x",
        }

    def test_account_link_without_frontend_url(self, client, stripe_client, monkeypatch):
        monkeypatch.delenv("FRONTEND_URL", raising=False)
        response = client.post("/api/create-account-link", json={"accountId": "acct_owner_1"})

        assert response.status_code == 500
        stripe_client.create_account_link.assert_not_called()

    def test_login_link(self, client, stripe_client):
        stripe_client.create_login_link.return_value = "https://connect.stripe.com/express/x"
        response = client.post("/api/get-connect-login-link", json={"accountId": "acct_owner_1"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "loginUrl": "https://connect.stripe.com/express/x"}

    def test_login_link_failure_has_details(self, client, stripe_client):
        stripe_client.create_login_link.side_effect = StripeCallError(details="Not an Express account")
        response = client.post("/api/get-connect-login-link", json={"accountId": "acct_owner_1"})

        assert response.status_code == 500
        assert response.json()["details"] == "Not an Express account"

    def test_create_account(self, client, stripe_client, db, monkeypatch):
        monkeypatch.setenv("FRONTEND_URL", "https://ebar.example.com")
        stripe_client.create_account.return_value = {"id": "acct_new"}
        stripe_client.create_account_link.return_value = "https://connect.stripe.com/setup/y"

        with patch("ebar.domain.accounts.link_connect_account") as mock_link:
            response = client.post(
                "/api/create-connect-account",
                json={
                    "email": "owner@example.com",
                    "businessName": "Sunset Beach Bar",
                    "ownerId": "owner-1",
                    "barId": "bar-1",
                },
            )

        assert response.status_code == 200
        assert response.json()["accountId"] == "acct_new"
        mock_link.assert_called_once_with(db, "bar-1", "acct_new")

    def test_create_account_missing_fields(self, client, stripe_client):
        response = client.post("/api/create-connect-account", json={"email": "owner@example.com"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_create_account_missing_fields_checked_before_db(self, client, stripe_client):
        with patch(
            "ebar.api.routes.connect._get_db", side_effect=RuntimeError("no credentials")
        ) as get_db:
            response = client.post(
                "/api/create-connect-account",
                json={"email": "owner@example.com", "barId": "bar-1"},
            )

        assert response.status_code == 400
        get_db.assert_not_called()
        stripe_client.create_account.assert_not_called()


class TestDisconnect:
    def test_disconnect(self, client, stripe_client, db):
        stripe_client.delete_account.return_value = "acct_owner_1"
        with patch("ebar.domain.accounts.unlink_connect_account") as mock_unlink:
            response = client.post(
                "/api/disconnect-stripe-account",
                json={"accountId": "acct_owner_1", "barId": "bar-1"},
            )

        assert response.status_code == 200
        assert response.json()["deletedAccountId"] == "acct_owner_1"
        mock_unlink.assert_called_once_with(db, "bar-1")

    def test_already_deleted(self, client, stripe_client, db):
        stripe_client.delete_account.side_effect = StripeAccountMissingError(code="resource_missing")
        with patch("ebar.domain.accounts.unlink_connect_account"):
            response = client.post(
                "/api/disconnect-stripe-account",
                json={"accountId": "acct_gone", "barId": "bar-1"},
            )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["deletedAccountId"] == "acct_gone"

    def test_requires_account_id(self, client, stripe_client, db):
        with patch(
            "ebar.api.routes.connect._get_db", side_effect=RuntimeError("no credentials")
        ) as get_db:
            response = client.post("/api/disconnect-stripe-account", json={"barId": "bar-1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Account ID required"}
        get_db.assert_not_called()
        stripe_client.delete_account.assert_not_called()


class TestUpdateBarConnectStatus:
    def test_restricted(self, client, db):
        bar = {"id": "bar-1", "connectAccountId": "acct_owner_1", "connectAccountStatus": "pending"}
        with patch(
            "ebar.domain.account_status.find_bar_by_connect_account", return_value=bar
        ), patch("ebar.domain.account_status.update_connect_status") as mock_update:
            response = client.post(
                "/api/update-bar-connect-status",
                json={
                    "connectAccountId": "acct_owner_1",
                    "chargesEnabled": True,
                    "payoutsEnabled": False,
                    "detailsSubmitted": True,
                },
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "barId": "bar-1",
            "connectAccountStatus": "restricted",
        }
        mock_update.assert_called_once_with(db, "bar-1", "restricted")

    def test_missing_flags_default_to_pending(self, client, db):
        with patch(
            "ebar.domain.account_status.find_bar_by_connect_account",
            return_value={"id": "bar-1"},
        ), patch("ebar.domain.account_status.update_connect_status"):
            response = client.post(
                "/api/update-bar-connect-status", json={"connectAccountId": "acct_owner_1"}
            )

        assert response.json()["connectAccountStatus"] == "pending"

    def test_unknown_account_is_404(self, client, db):
        with patch("ebar.domain.account_status.find_bar_by_connect_account", return_value=None):
            response = client.post(
                "/api/update-bar-connect-status",
                json={"connectAccountId": "acct_unknown", "chargesEnabled": True},
            )

        assert response.status_code == 404
        assert response.json() == {"error": "Bar not found"}

    def test_requires_account_id(self, client, db):
        response = client.post("/api/update-bar-connect-status", json={"chargesEnabled": True})
        assert response.status_code == 400
        assert response.json() == {"error": "Connect account ID required"}


class TestSyncBarConnectStatus:
    def test_sync(self, client, stripe_client, db):
        with patch(
            "ebar.domain.account_status.get_bar",
            return_value={"id": "bar-1", "connectAccountId": "acct_owner_1"},
        ), patch("ebar.domain.account_status.update_connect_status") as mock_update:
            response = client.post("/api/sync-bar-connect-status", json={"barId": "bar-1"})

        assert response.status_code == 200
        assert response.json()["connectAccountStatus"] == "active"
        assert response.json()["paymentSetupComplete"] is True
        mock_update.assert_called_once_with(db, "bar-1", "active")

    def test_requires_bar_id(self, client):
        response = client.post("/api/sync-bar-connect-status", json={})
        assert response.status_code == 400
