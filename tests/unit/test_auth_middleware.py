import pytest
from flask import Flask

from manage_easy.config.settings import Settings
from manage_easy.middleware.auth_middleware import AuthMiddleware, owner_scope
from manage_easy.middleware.error_middleware import AuthenticationError, AuthorizationError


@pytest.fixture
def flask_app():
    return Flask("test_auth_app")


class TestExtractToken:
    def test_bearer_header(self, flask_app):
        with flask_app.test_request_context("/", headers={"Authorization": "Bearer abc"}):
            assert AuthMiddleware.extract_token() == "abc"

    def test_query_parameter(self, flask_app):
        with flask_app.test_request_context("/?token=xyz"):
            assert AuthMiddleware.extract_token() == "xyz"

    def test_missing(self, flask_app):
        with flask_app.test_request_context("/", headers={"Authorization": "Basic abc"}):
            assert AuthMiddleware.extract_token() is None


class TestResolveUserId:
    """Test token verification in cloud and emulator modes"""

    @pytest.fixture(autouse=True)
    def cloud_mode(self, monkeypatch):
        monkeypatch.setattr(Settings, "FUNCTIONS_EMULATOR", False)
        monkeypatch.setattr(Settings, "FIRESTORE_EMULATOR_HOST", None)
        monkeypatch.setattr(Settings, "FIREBASE_AUTH_EMULATOR_HOST", None)

    def test_verified_token(self, verify_id_token):
        assert AuthMiddleware.resolve_user_id("good-token") == "user-1"
        verify_id_token.assert_called_once_with("good-token")

    def test_invalid_token(self, verify_id_token):
        verify_id_token.side_effect = ValueError("expired")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            AuthMiddleware.resolve_user_id("bad-token")

    def test_test_token_rejected_outside_emulator(self, verify_id_token):
        verify_id_token.side_effect = ValueError("not a jwt")
        with pytest.raises(AuthenticationError):
            AuthMiddleware.resolve_user_id("test-anything")

    def test_test_token_needs_functions_emulator(self, monkeypatch, verify_id_token):
        """Test Firestore/Auth emulator hosts alone do not enable test tokens"""
        monkeypatch.setattr(Settings, "FIRESTORE_EMULATOR_HOST", "localhost:8080")
        monkeypatch.setattr(Settings, "FIREBASE_AUTH_EMULATOR_HOST", "localhost:9099")
        verify_id_token.side_effect = ValueError("not a jwt")

        with pytest.raises(AuthenticationError):
            AuthMiddleware.resolve_user_id("test-anything")
        verify_id_token.assert_called_once_with("test-anything")

    def test_test_token_in_emulator(self, monkeypatch, verify_id_token):
        monkeypatch.setattr(Settings, "FUNCTIONS_EMULATOR", True)
        assert AuthMiddleware.resolve_user_id("test-anything") == Settings.EMULATOR_TEST_USER_ID
        verify_id_token.assert_not_called()


class TestOwnerScope:
    def test_defaults_to_caller(self, flask_app):
        with flask_app.test_request_context("/"):
            from flask import g
            g.user_id = "me"
            assert owner_scope({}) == "me"

    def test_shared_owner(self, flask_app, db):
        for owner in ("payload-owner", "query-owner"):
            db.collection("users").document(owner).set({"collaboratorIds": ["me"]})
        with flask_app.test_request_context("/?ownerId=query-owner"):
            from flask import g
            g.user_id = "me"
            assert owner_scope({"ownerId": "payload-owner"}) == "payload-owner"
            assert owner_scope() == "query-owner"

    def test_unshared_owner_rejected(self, flask_app, db):
        db.collection("users").document("stranger").set({"name": "Stranger"})
        with flask_app.test_request_context("/"):
            from flask import g
            g.user_id = "me"
            with pytest.raises(AuthorizationError):
                owner_scope({"ownerId": "stranger"})
            with pytest.raises(AuthorizationError):
                owner_scope({"ownerId": "nobody"})
