"""Signed access/refresh tokens (HS256 JWT)."""
from datetime import datetime, timedelta

from flask import current_app
from jose import JWTError, jwt

ALGORITHM = 'HS256'
ACCESS = 'access'
REFRESH = 'refresh'


class TokenError(Exception):
    pass


def _settings(kind: str):
    cfg = current_app.config
    if kind == ACCESS:
        return cfg['JWT_SECRET'], cfg['JWT_EXPIRES_IN']
    if kind == REFRESH:
        return cfg['JWT_REFRESH_SECRET'], cfg['JWT_REFRESH_EXPIRES_IN']
    raise ValueError(f"Unknown token type: {kind}")


def issue_token(user_id: str, kind: str = ACCESS, now: datetime = None) -> str:
    secret, lifetime = _settings(kind)
    now = now or datetime.utcnow()
    claims = {
        'sub': user_id,
        'type': kind,
        'iat': now,
        'exp': now + timedelta(seconds=lifetime),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def issue_token_pair(user_id: str) -> dict:
    return {
        'token': issue_token(user_id, ACCESS),
        'refreshToken': issue_token(user_id, REFRESH),
    }


def decode_token(token: str, kind: str = ACCESS) -> str:
    """Verify a token and return the user id it was issued for."""
    secret, _ = _settings(kind)
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise TokenError(str(e)) from e

    if claims.get('type') != kind or not claims.get('sub'):
        raise TokenError(f"Not a valid {kind} token")
    return claims['sub']
