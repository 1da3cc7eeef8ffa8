"""
Unit tests for access/refresh token issuance and verification.
"""
from datetime import datetime, timedelta

import pytest
from jose import jwt

from arena.tokens import (
    ACCESS, ALGORITHM, REFRESH, TokenError, decode_token, issue_token, issue_token_pair,
)

USER_ID = '5f1d7c2e9b1e8a3d4c6b2a10'


class TestIssueAndDecode:

    def test_access_token_round_trip(self, app_ctx):
        token = issue_token(USER_ID, ACCESS)
        assert decode_token(token, ACCESS) == USER_ID

    def test_claims(self, app_ctx):
        token = issue_token(USER_ID, REFRESH)
        claims = jwt.decode(token, app_ctx.config['JWT_REFRESH_SECRET'], algorithms=[ALGORITHM])
        assert claims['sub'] == USER_ID
        assert claims['type'] == REFRESH
        assert claims['exp'] - claims['iat'] == app_ctx.config['JWT_REFRESH_EXPIRES_IN']

    def test_pair_keys(self, app_ctx):
        pair = issue_token_pair(USER_ID)
        assert set(pair) == {'token', 'refreshToken'}
        assert decode_token(pair['refreshToken'], REFRESH) == USER_ID


class TestRejections:

    def test_refresh_token_is_not_an_access_token(self, app_ctx):
        token = issue_token(USER_ID, REFRESH)
        with pytest.raises(TokenError):
            decode_token(token, ACCESS)

    def test_access_token_is_not_a_refresh_token(self, app_ctx):
        token = issue_token(USER_ID, ACCESS)
        with pytest.raises(TokenError):
            decode_token(token, REFRESH)

    def test_expired_token(self, app_ctx):
        issued = datetime.utcnow() - timedelta(seconds=app_ctx.config['JWT_EXPIRES_IN'] + 60)
        token = issue_token(USER_ID, ACCESS, now=issued)
        with pytest.raises(TokenError):
            decode_token(token, ACCESS)

    def test_wrong_secret(self, app_ctx):
        token = jwt.encode({'sub': USER_ID, 'type': ACCESS}, 'not-the-secret', algorithm=ALGORITHM)
        with pytest.raises(TokenError):
            decode_token(token, ACCESS)

    def test_garbage(self, app_ctx):
        with pytest.raises(TokenError):
            decode_token('not-a-jwt', ACCESS)

    def test_unknown_kind(self, app_ctx):
        with pytest.raises(ValueError):
            issue_token(USER_ID, 'session')
