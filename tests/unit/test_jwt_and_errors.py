"""Session tokens and the error body contract."""

import jwt
import pytest

from agora.auth.jwt import create_access_token, verify_token
from agora.errors import (
    AlreadyClaimed,
    PersistenceInconsistency,
    TransportFailure,
    ValidationError,
)


class TestSessionTokens:
    def test_round_trip_claims(self):
        payload = verify_token(create_access_token(7, "ada@example.com"))
        assert payload["sub"] == "7"
        assert payload["email"] == "ada@example.com"
        assert payload["iss"] == "agora"

    def test_wrong_secret_rejected(self):
        forged = jwt.encode({"sub": "1", "type": "access", "iss": "agora"}, "x" * 48, algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(forged)

    def test_non_access_token_rejected(self, settings):
        token = jwt.encode({"sub": "1", "type": "refresh", "iss": "agora"}, settings.jwt_secret, algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)


class TestErrorBodies:
    def test_validation_error(self):
        err = ValidationError(["title", "votingEndDate"])
        assert err.status_code == 400
        assert err.to_body() == {
            "error": "ValidationError",
            "detail": "Invalid or missing fields: title, votingEndDate",
            "fields": ["title", "votingEndDate"],
        }

    def test_retryable_transport_failure_is_503(self):
        assert TransportFailure("busy", retryable=True).status_code == 503
        assert TransportFailure("aborted").status_code == 502

    def test_already_claimed_carries_nft(self):
        body = AlreadyClaimed(3, "0xnft").to_body()
        assert (body["achievementType"], body["nftId"]) == (3, "0xnft")

    def test_persistence_inconsistency_names_digest(self):
        err = PersistenceInconsistency("vote", "D9", "disk full")
        assert err.status_code == 500
        assert err.to_body()["digest"] == "D9"
