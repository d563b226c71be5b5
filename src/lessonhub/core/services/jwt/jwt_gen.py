import time
from typing import Any

from authlib.common.security import generate_token
from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.lessonhub.core.exceptions import AuthError
from src.lessonhub.runtime.context import get_config

# Registered claims the signer owns; callers cannot override them
_RESERVED_CLAIMS = frozenset({"iss", "sub", "exp", "iat", "nbf", "jti"})


class JwtCredentialSigner:
    """Issues and verifies session credentials signed with the API's own secret.

    Args:
        secret: Signing secret. Defaults to `app.session_signing_secret`.
        issuer: `iss` claim stamped into issued tokens. Defaults to `jwt.gen_issuer`.
        algorithm: Signing algorithm. Defaults to `jwt.signing_algorithm`.

    Raises:
        RuntimeError: If no signing secret is configured
        ValueError: If the algorithm is not in `jwt.allowed_algorithms`
    """

    def __init__(
        self,
        secret: str | None = None,
        issuer: str | None = None,
        algorithm: str | None = None,
    ) -> None:
        config = get_config()
        self._secret = secret or config.app.session_signing_secret
        if not self._secret:
            raise RuntimeError("Session signing secret not configured")

        self._issuer = issuer or config.jwt.gen_issuer
        self._algorithm = algorithm or config.jwt.signing_algorithm
        if self._algorithm not in config.jwt.allowed_algorithms:
            raise ValueError(f"Algorithm {self._algorithm} not allowed")

        self._clock_skew = config.jwt.clock_skew
        self._jwt = JsonWebToken([self._algorithm])

    @property
    def issuer(self) -> str:
        return self._issuer

    def issue(self, claims: dict[str, Any], ttl: int) -> str:
        """Sign `claims` into a compact JWT valid for `ttl` seconds.

        `sub` is set from the `accountId` claim when present.
        """
        now = int(time.time())
        payload = {k: v for k, v in claims.items() if k not in _RESERVED_CLAIMS}
        payload.update(
            {
                "iss": self._issuer,
                "iat": now,
                "nbf": now,
                "exp": now + ttl,
                "jti": generate_token(16),
            }
        )
        if "accountId" in claims:
            payload["sub"] = str(claims["accountId"])

        header = {"alg": self._algorithm, "typ": "JWT"}
        token = self._jwt.encode(header, payload, self._secret)
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of a token this signer issued.

        Raises:
            AuthError: On a bad signature, foreign issuer, or expired token
        """
        try:
            claims = self._jwt.decode(
                token,
                self._secret,
                claims_options={
                    "iss": {"essential": True, "value": self._issuer},
                    "exp": {"essential": True},
                },
            )
            claims.validate(leeway=self._clock_skew)
        except (JoseError, ValueError) as exc:
            logger.debug(f"Session credential rejected: {exc}")
            raise AuthError() from exc
        return dict(claims)
