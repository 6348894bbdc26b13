"""Unit tests for identity claims tokens

Tests cover:
- Token creation with role and jurisdiction claims
- Token decoding and validation
- Token expiration handling
- Invalid and tampered token handling
- Actor construction from claims
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from siteverify.auth.jwt import actor_from_claims, create_access_token, decode_token
from siteverify.config import get_settings
from siteverify.domain.verification.models import Actor


def _secret() -> str:
    return get_settings().JWT_SECRET


class TestCreateAccessToken:
    """Test claims token creation"""

    def test_create_token_with_valid_claims(self):
        """Test token is a three-part JWT"""
        token = create_access_token("mod-lagos", "moderator", "Lagos")

        assert isinstance(token, str)
        assert len(token.split('.')) == 3

    def test_token_contains_correct_claims(self):
        """Test token payload contains all expected claims"""
        token = create_access_token("mod-lagos", "moderator", "Lagos")

        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload['sub'] == "mod-lagos"
        assert payload['role'] == "moderator"
        assert payload['jurisdiction'] == "Lagos"
        assert 'iat' in payload
        assert 'exp' in payload

    def test_token_expiration_time(self):
        """Test token expires after the requested time"""
        before = datetime.now(timezone.utc)
        token = create_access_token("admin-1", "admin", expiry_minutes=30)

        payload = jwt.decode(token, options={"verify_signature": False})

        # Allow 5 second tolerance for test execution time
        exp_time = datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
        time_diff = abs((exp_time - (before + timedelta(minutes=30))).total_seconds())
        assert time_diff < 5, f'Expected expiry around 30 min from now, got diff of {time_diff}s'

    def test_token_uses_hs256_algorithm(self):
        """Test token is signed with HS256 algorithm"""
        header = jwt.get_unverified_header(create_access_token("admin-1", "admin"))
        assert header['alg'] == 'HS256'


class TestDecodeToken:
    """Test claims token decoding and validation"""

    def test_decode_valid_token(self):
        payload = decode_token(create_access_token("submitter-1", "submitter"))

        assert payload['sub'] == "submitter-1"
        assert payload['role'] == "submitter"
        assert payload['jurisdiction'] is None

    def test_decode_expired_token_raises_error(self):
        """Test decoding expired token raises ExpiredSignatureError"""
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        expired_token = jwt.encode(
            {'sub': 'admin-1', 'role': 'admin', 'iat': int(past.timestamp()), 'exp': int(past.timestamp())},
            _secret(),
            algorithm='HS256',
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(expired_token)

    def test_decode_token_with_invalid_signature(self):
        """Test decoding token signed with another secret raises error"""
        token = jwt.encode(
            {
                'sub': 'admin-1',
                'role': 'admin',
                'exp': int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp()),
            },
            'wrong-secret-key-that-is-long-enough-for-hs256-signing',
            algorithm='HS256',
        )

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)

    def test_decode_malformed_token(self):
        """Test decoding malformed token raises error"""
        for token in ["not.a.token", "invalid-token", "", "header.payload", "a.b.c.d"]:
            with pytest.raises(jwt.InvalidTokenError):
                decode_token(token)

    def test_decode_token_with_missing_role(self):
        """Test a token without the role claim is rejected"""
        token = jwt.encode(
            {'sub': 'admin-1', 'exp': int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
            _secret(),
            algorithm='HS256',
        )

        with pytest.raises(jwt.MissingRequiredClaimError):
            decode_token(token)

    def test_token_cannot_be_tampered(self):
        """Test promoting a submitter to admin invalidates the signature"""
        token = create_access_token("submitter-1", "submitter")
        parts = token.split('.')

        payload = json.loads(base64.urlsafe_b64decode(parts[1] + '=='))
        payload['role'] = 'admin'
        tampered_payload = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip('=')

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(f"{parts[0]}.{tampered_payload}.{parts[2]}")


class TestActorFromClaims:
    """Test claims → Actor"""

    @pytest.mark.parametrize("role", ["submitter", "moderator", "admin"])
    def test_round_trip_for_all_roles(self, role):
        actor = actor_from_claims(decode_token(create_access_token(f"{role}-1", role, "Lagos")))

        assert actor == Actor(user_id=f"{role}-1", role=role, jurisdiction="Lagos")

    def test_missing_jurisdiction(self):
        actor = actor_from_claims({'sub': 'admin-1', 'role': 'admin'})
        assert actor.jurisdiction is None
