"""Unit tests for token handling and the role check."""

from datetime import timedelta

import pytest

from src.domain.enums import UserRole
from src.domain.exceptions import Forbidden
from src.security import Caller, create_access_token, decode_access_token, ensure_role


class TestTokens:
    def test_round_trip_claims(self):
        token = create_access_token(7, UserRole.PILOT)
        claims = decode_access_token(token)
        assert claims["sub"] == "7"
        assert claims["role"] == "pilot"

    def test_expired_token_is_rejected(self):
        token = create_access_token(7, UserRole.CLIENT, expires_delta=timedelta(seconds=-5))
        assert decode_access_token(token) is None

    def test_garbage_token_is_rejected(self):
        assert decode_access_token("not-a-jwt") is None


class TestEnsureRole:
    def test_allowed_role_passes(self):
        ensure_role(Caller(user_id=1, role=UserRole.ADMIN), {UserRole.ADMIN})

    def test_other_role_is_forbidden(self):
        with pytest.raises(Forbidden) as exc:
            ensure_role(Caller(user_id=1, role=UserRole.CLIENT), [UserRole.ADMIN, UserRole.PILOT])
        assert exc.value.status_code == 403
        assert exc.value.message == "Requires one of roles: admin, pilot"

    def test_is_admin(self):
        assert Caller(user_id=1, role=UserRole.ADMIN).is_admin
        assert not Caller(user_id=2, role=UserRole.PILOT).is_admin
