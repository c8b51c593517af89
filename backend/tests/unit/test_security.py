"""Session tokens, password hashing and time helpers"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskplus.domain.errors import AuthenticationError
from taskplus.utils.jwt import SessionTokenService
from taskplus.utils.security import hash_password, verify_password
from taskplus.utils.time import format_iso, parse_iso, to_storage, age_in_hours, minutes_ago

SECRET = "unit-test-secret-key-with-32-bytes!!"


class TestSessionTokens:

    def test_round_trip(self):
        service = SessionTokenService(secret=SECRET, algorithm="HS256", expires_minutes=5)

        token = service.create_token("USR-1")

        assert service.get_user_id(token) == "USR-1"
        assert service.get_user_id(f"Bearer {token}") == "USR-1"
        assert service.max_age_seconds == 300

    def test_expired_token(self):
        service = SessionTokenService(secret=SECRET, algorithm="HS256")
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "USR-1", "iat": past, "exp": past + timedelta(minutes=1)},
            SECRET, algorithm="HS256"
        )

        with pytest.raises(AuthenticationError, match="expired"):
            service.validate_token(token)

    def test_wrong_secret(self):
        token = SessionTokenService(secret=SECRET).create_token("USR-1")
        other = SessionTokenService(secret="another-secret-key-with-32-bytes!!!!")

        with pytest.raises(AuthenticationError):
            other.get_user_id(token)

    def test_missing_subject(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            SECRET, algorithm="HS256"
        )

        with pytest.raises(AuthenticationError):
            SessionTokenService(secret=SECRET).get_user_id(token)

    @pytest.mark.parametrize("token", ["", "garbage", "Bearer "])
    def test_malformed(self, token):
        with pytest.raises(AuthenticationError):
            SessionTokenService(secret=SECRET).validate_token(token)


class TestPasswords:

    def test_hash_and_verify(self):
        password_hash = hash_password("s3cret-pass")

        assert password_hash.startswith("$argon2")
        assert verify_password("s3cret-pass", password_hash)
        assert not verify_password("wrong", password_hash)

    def test_malformed_hash_never_matches(self):
        assert not verify_password("anything", "not-a-hash")
        assert not verify_password("", hash_password("x"))


class TestTime:

    def test_storage_is_naive_utc(self):
        aware = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_storage(aware) == datetime(2024, 5, 1, 12, 0)

    def test_iso_round_trip(self):
        assert format_iso(datetime(2024, 5, 1, 12, 0)) == "2024-05-01T12:00:00Z"
        assert parse_iso("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_iso("2024-05-01") == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_age_in_hours_is_floored(self):
        now = datetime(2024, 5, 1, 12, 0)

        assert age_in_hours(datetime(2024, 5, 1, 9, 30), now) == 2
        assert minutes_ago(90, now) == datetime(2024, 5, 1, 10, 30)
