"""Tests for password hashing, JWT helpers and OTP generation."""

from datetime import timedelta

from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    generate_otp,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_empty_hash_never_matches(self):
        """Google-only accounts have no password hash."""
        assert not verify_password("", "")
        assert not verify_password("anything", "")

    def test_garbage_hash_is_rejected(self):
        assert not verify_password("anything", "not-an-argon2-hash")


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_access_token({"id": "abc", "email": "a@example.com"})
        payload = decode_access_token(token)
        assert payload["id"] == "abc"
        assert payload["email"] == "a@example.com"
        assert "exp" in payload

    def test_access_and_refresh_use_different_secrets(self):
        access = create_access_token({"id": "abc"})
        refresh = create_refresh_token({"id": "abc"})
        assert decode_refresh_token(access) is None
        assert decode_access_token(refresh) is None
        assert decode_refresh_token(refresh)["id"] == "abc"

    def test_expired_token_is_rejected(self):
        token = create_access_token({"id": "abc"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token({"id": "abc"})
        assert decode_access_token(token + "x") is None


class TestOTP:
    def test_default_length_is_six_digits(self):
        for _ in range(50):
            otp = generate_otp()
            assert len(otp) == 6
            assert otp.isdigit()

    def test_custom_length(self):
        assert len(generate_otp(8)) == 8
