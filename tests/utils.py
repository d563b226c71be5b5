import base64
import time
from typing import Any
from unittest.mock import AsyncMock, Mock

from authlib.jose import JsonWebKey, jwt


def oct_jwk(key: bytes, kid: str) -> dict[str, str]:
    return {
        "kty": "oct",
        "k": base64.urlsafe_b64encode(key).rstrip(b"=").decode("ascii"),
        "alg": "HS256",
        "kid": kid,
    }


def encode_token(
    secret: str,
    claims: dict[str, Any],
    *,
    kid: str | None = None,
    expires_in: int = 3600,
) -> str:
    """Sign `claims` with HS256, filling in iat/exp unless given."""
    now = int(time.time())
    payload = {"iat": now, "exp": now + expires_in, **claims}
    header = {"alg": "HS256", "typ": "JWT"}
    if kid:
        header["kid"] = kid
    token = jwt.encode(header, payload, secret)
    return token.decode() if isinstance(token, bytes) else token


def rsa_public_jwk(kid: str) -> dict[str, Any]:
    key = JsonWebKey.generate_key("RSA", 2048, is_private=True)
    return {**key.as_dict(is_private=False), "kid": kid}


def fake_async_client(response=None, error: Exception | None = None) -> AsyncMock:
    """Stand-in for `httpx.AsyncClient` used as an async context manager."""
    client = AsyncMock()
    if error is not None:
        client.get.side_effect = error
    else:
        client.get.return_value = response
    client.__aenter__.return_value = client
    client.__aexit__.return_value = None
    return client


def json_response(payload: Any) -> Mock:
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response
