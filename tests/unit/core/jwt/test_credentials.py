"""Tests for session credential signing and bearer credential verification."""

from unittest.mock import patch

import pytest

from src.lessonhub.core.exceptions import AuthError
from src.lessonhub.core.models.identity import VerifiedCaller
from src.lessonhub.core.services import (
    CredentialVerifier,
    JwtCredentialSigner,
    JwtVerificationService,
)
from src.lessonhub.core.services.jwt.jwt_utils import preview_jwt
from src.lessonhub.runtime.config.config_data import AppConfig, ConfigData
from src.lessonhub.runtime.context import with_context
from tests.utils import (
    encode_token,
    fake_async_client,
    json_response,
    oct_jwk,
    rsa_public_jwk,
)

ASYNC_CLIENT = "src.lessonhub.core.services.jwt.jwks.httpx.AsyncClient"


class TestJwtCredentialSigner:
    def test_issue_and_verify(self, credential_signer: JwtCredentialSigner):
        token = credential_signer.issue({"accountId": "acc-1", "email": "a@x.com"}, 3600)

        claims = credential_signer.verify(token)

        assert claims["accountId"] == "acc-1"
        assert claims["sub"] == "acc-1"
        assert claims["email"] == "a@x.com"
        assert claims["iss"] == "lessonhub-test-api"
        assert claims["exp"] - claims["iat"] == 3600
        assert claims["jti"]

    def test_reserved_claims_cannot_be_overridden(
        self, credential_signer: JwtCredentialSigner
    ):
        token = credential_signer.issue(
            {"accountId": "acc-1", "iss": "someone-else", "exp": 1}, 3600
        )

        claims = credential_signer.verify(token)
        assert claims["iss"] == "lessonhub-test-api"
        assert claims["exp"] > 1

    def test_unique_token_ids(self, credential_signer: JwtCredentialSigner):
        first = credential_signer.verify(credential_signer.issue({"accountId": "a"}, 60))
        second = credential_signer.verify(credential_signer.issue({"accountId": "a"}, 60))

        assert first["jti"] != second["jti"]

    def test_expired_token_rejected(self, credential_signer: JwtCredentialSigner):
        token = credential_signer.issue({"accountId": "acc-1"}, -120)

        with pytest.raises(AuthError):
            credential_signer.verify(token)

    def test_foreign_secret_rejected(self, credential_signer: JwtCredentialSigner):
        forger = JwtCredentialSigner(secret="another-signing-secret-0123456789abcd")
        token = forger.issue({"accountId": "acc-1"}, 3600)

        with pytest.raises(AuthError):
            credential_signer.verify(token)

    def test_foreign_issuer_rejected(self, credential_signer: JwtCredentialSigner):
        token = JwtCredentialSigner(issuer="other-api").issue({"accountId": "acc-1"}, 3600)

        with pytest.raises(AuthError):
            credential_signer.verify(token)

    def test_missing_secret(self):
        with with_context(ConfigData(app=AppConfig(session_signing_secret=None))):
            with pytest.raises(RuntimeError):
                JwtCredentialSigner()

    def test_disallowed_algorithm(self):
        with pytest.raises(ValueError):
            JwtCredentialSigner(algorithm="none")


class TestJwtPreview:
    def test_preview_reads_header_and_claims(self, session_secret: str):
        token = encode_token(session_secret, {"iss": "https://issuer/", "sub": "x"}, kid="k1")

        preview = preview_jwt(token)

        assert preview.alg == "HS256"
        assert preview.kid == "k1"
        assert preview.iss == "https://issuer"
        assert preview.claims["sub"] == "x"

    @pytest.mark.parametrize(
        "token", ["", "not-a-jwt", "a.b", "a..c", "a.b.c", "e30=.e30.sig", "x" * 9000]
    )
    def test_malformed_tokens(self, token: str):
        with pytest.raises(AuthError):
            preview_jwt(token)


class TestFederatedVerification:
    async def test_valid_id_token(
        self, jwt_verify_service: JwtVerificationService, id_token_factory, issuer: str
    ):
        token = id_token_factory("g1", "a@x.com", name="Alice")

        claims = await jwt_verify_service.verify_id_token(token)

        assert claims["sub"] == "g1"
        assert claims["email"] == "a@x.com"
        assert claims["iss"] == issuer

    async def test_wrong_audience(
        self,
        jwt_verify_service: JwtVerificationService,
        provider_secret: str,
        issuer: str,
        kid_for_jwt: str,
    ):
        token = encode_token(
            provider_secret,
            {"iss": issuer, "aud": "someone-else", "sub": "g1"},
            kid=kid_for_jwt,
        )

        with pytest.raises(AuthError):
            await jwt_verify_service.verify_id_token(token)

    async def test_unknown_issuer(
        self, jwt_verify_service: JwtVerificationService, provider_secret: str, audience: str
    ):
        token = encode_token(
            provider_secret, {"iss": "https://evil.example", "aud": audience, "sub": "g1"}
        )

        with pytest.raises(AuthError):
            await jwt_verify_service.verify_id_token(token)

    async def test_unknown_key_id(
        self,
        jwt_verify_service: JwtVerificationService,
        provider_secret: str,
        issuer: str,
        audience: str,
        jwks_data,
    ):
        token = encode_token(
            provider_secret, {"iss": issuer, "aud": audience, "sub": "g1"}, kid="rotated"
        )
        client = fake_async_client(json_response(jwks_data))

        with patch(ASYNC_CLIENT, return_value=client):
            with pytest.raises(AuthError):
                await jwt_verify_service.verify_id_token(token)

        # one refresh of the provider keys before giving up
        assert client.get.await_count == 1

    async def test_rotated_key_is_fetched(
        self,
        jwt_verify_service: JwtVerificationService,
        jwks_data,
        issuer: str,
        audience: str,
    ):
        new_secret = "rotated-provider-secret-0123456789abcd"
        refreshed = {
            "keys": [*jwks_data["keys"], oct_jwk(new_secret.encode("utf-8"), "rotated")]
        }
        token = encode_token(
            new_secret, {"iss": issuer, "aud": audience, "sub": "g1"}, kid="rotated"
        )

        with patch(ASYNC_CLIENT, return_value=fake_async_client(json_response(refreshed))):
            claims = await jwt_verify_service.verify_id_token(token)

        assert claims["sub"] == "g1"

    async def test_key_of_wrong_type_for_algorithm(
        self,
        jwt_verify_service: JwtVerificationService,
        jwks_cache,
        oidc_provider_config,
        provider_secret: str,
        issuer: str,
        audience: str,
    ):
        jwks_cache.set_jwks(oidc_provider_config.jwks_uri, {"keys": [rsa_public_jwk("rsa1")]})
        token = encode_token(
            provider_secret, {"iss": issuer, "aud": audience, "sub": "g1"}, kid="rsa1"
        )

        with patch(ASYNC_CLIENT) as client_cls:
            with pytest.raises(AuthError):
                await jwt_verify_service.verify_id_token(token)

        client_cls.assert_not_called()

    async def test_bad_signature(
        self, jwt_verify_service: JwtVerificationService, issuer: str, audience: str, kid_for_jwt: str
    ):
        token = encode_token(
            "not-the-provider-secret-0123456789abcd",
            {"iss": issuer, "aud": audience, "sub": "g1"},
            kid=kid_for_jwt,
        )

        with pytest.raises(AuthError):
            await jwt_verify_service.verify_id_token(token)

    async def test_expired(
        self,
        jwt_verify_service: JwtVerificationService,
        provider_secret: str,
        issuer: str,
        audience: str,
        kid_for_jwt: str,
    ):
        token = encode_token(
            provider_secret,
            {"iss": issuer, "aud": audience, "sub": "g1"},
            kid=kid_for_jwt,
            expires_in=-600,
        )

        with pytest.raises(AuthError):
            await jwt_verify_service.verify_id_token(token)


class _RecordingVariant:
    def __init__(self, name: str, accepts: bool):
        self.name = name
        self._accepts = accepts
        self.calls = 0

    def accepts(self, preview) -> bool:
        return self._accepts

    async def verify(self, token, preview) -> VerifiedCaller:
        self.calls += 1
        return VerifiedCaller(kind="local", identifier=self.name)


class TestCredentialVerifier:
    async def test_federated_token(
        self, credential_verifier: CredentialVerifier, id_token_factory
    ):
        caller = await credential_verifier.verify(id_token_factory("g1", "a@x.com"))

        assert caller.kind == "federated"
        assert caller.identifier == "g1"
        assert caller.email == "a@x.com"

    async def test_session_token(
        self, credential_verifier: CredentialVerifier, credential_signer: JwtCredentialSigner
    ):
        token = credential_signer.issue({"accountId": "acc-1", "email": "a@x.com"}, 3600)

        caller = await credential_verifier.verify(token)

        assert caller.kind == "local"
        assert caller.identifier == "acc-1"

    async def test_unrecognised_issuer(
        self, credential_verifier: CredentialVerifier, session_secret: str
    ):
        token = encode_token(session_secret, {"iss": "stranger", "accountId": "acc-1"})

        with pytest.raises(AuthError):
            await credential_verifier.verify(token)

    async def test_malformed(self, credential_verifier: CredentialVerifier):
        with pytest.raises(AuthError):
            await credential_verifier.verify("garbage")

    async def test_first_accepting_variant_decides(self, session_secret: str):
        skipped = _RecordingVariant("first", accepts=False)
        chosen = _RecordingVariant("second", accepts=True)
        never = _RecordingVariant("third", accepts=True)
        verifier = CredentialVerifier([skipped, chosen, never])

        caller = await verifier.verify(encode_token(session_secret, {"iss": "x"}))

        assert caller.identifier == "second"
        assert (skipped.calls, chosen.calls, never.calls) == (0, 1, 0)
