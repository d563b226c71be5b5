"""Tests for the FastAPI authentication dependencies and error mapping."""

import httpx
import pytest
from fastapi import Depends, FastAPI

from src.lessonhub.api.http.app_data import ApplicationDependencies
from src.lessonhub.api.http.deps import (
    get_current_account,
    get_identity_resolver,
    require_admin,
)
from src.lessonhub.api.http.errors import error_body, install_error_handlers, status_for
from src.lessonhub.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from src.lessonhub.core.services import IdentityResolver
from src.lessonhub.entities.core.account import Account, AccountRepository
from tests.utils import encode_token, rsa_public_jwk


@pytest.fixture
def app(
    database_service,
    jwks_cache,
    jwks_service,
    jwt_verify_service,
    credential_signer,
    credential_verifier,
    password_hasher,
) -> FastAPI:
    app = FastAPI()
    app.state.app_dependencies = ApplicationDependencies(
        database_service=database_service,
        jwks_cache=jwks_cache,
        jwks_service=jwks_service,
        jwt_verify_service=jwt_verify_service,
        credential_signer=credential_signer,
        credential_verifier=credential_verifier,
        password_hasher=password_hasher,
    )
    install_error_handlers(app)

    @app.get("/me")
    async def me(account: Account = Depends(get_current_account)):
        return account.public_view().model_dump()

    @app.get("/admin")
    async def admin(account: Account = Depends(require_admin)):
        return {"id": account.id}

    @app.post("/register")
    async def register(
        body: dict, resolver: IdentityResolver = Depends(get_identity_resolver)
    ):
        result = resolver.register_with_password(
            body.get("email", ""), body.get("display_name", ""), body.get("password", "")
        )
        return result.model_dump()

    return app


@pytest.fixture
async def client(app: FastAPI):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _register(client: httpx.AsyncClient, email: str = "bob@example.com") -> dict:
    response = await client.post(
        "/register", json={"email": email, "display_name": "Bob", "password": "secret1"}
    )
    assert response.status_code == 200
    return response.json()


class TestCurrentAccount:
    async def test_missing_token(self, client: httpx.AsyncClient):
        response = await client.get("/me")

        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "No token provided"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_session_credential(self, client: httpx.AsyncClient):
        registered = await _register(client)

        response = await client.get(
            "/me", headers={"Authorization": f"Bearer {registered['token']}"}
        )

        assert response.status_code == 200
        assert response.json()["id"] == registered["account"]["id"]
        assert "password_hash" not in response.json()

    async def test_federated_credential(
        self, client: httpx.AsyncClient, app: FastAPI, id_token_factory
    ):
        deps = app.state.app_dependencies
        with deps.database_service.session_scope() as session:
            account = AccountRepository(session).insert(
                Account(email="a@x.com", display_name="A", federated_id="g1")
            )

        response = await client.get(
            "/me", headers={"Authorization": f"Bearer {id_token_factory('g1', 'a@x.com')}"}
        )

        assert response.status_code == 200
        assert response.json()["id"] == account.id

    async def test_invalid_token(self, client: httpx.AsyncClient):
        response = await client.get("/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "Invalid token"

    async def test_symmetric_token_naming_rsa_key(
        self,
        client: httpx.AsyncClient,
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

        response = await client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "Invalid token"

    async def test_unknown_account(self, client: httpx.AsyncClient, credential_signer):
        token = credential_signer.issue({"accountId": "ghost", "email": "g@x.com"}, 3600)

        response = await client.get("/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json()["detail"]["message"] == "User not found"


class TestRequireAdmin:
    async def test_regular_user_forbidden(self, client: httpx.AsyncClient):
        registered = await _register(client)

        response = await client.get(
            "/admin", headers={"Authorization": f"Bearer {registered['token']}"}
        )

        assert response.status_code == 403
        assert response.json()["detail"]["message"] == "Forbidden: Admins only"

    async def test_bootstrap_admin_allowed(
        self, client: httpx.AsyncClient, bootstrap_admin_email: str
    ):
        registered = await _register(client, bootstrap_admin_email)

        response = await client.get(
            "/admin", headers={"Authorization": f"Bearer {registered['token']}"}
        )

        assert response.status_code == 200
        assert response.json() == {"id": registered["account"]["id"]}


class TestErrorMapping:
    async def test_conflict_handler(self, client: httpx.AsyncClient):
        await _register(client)

        response = await client.post(
            "/register",
            json={"email": "bob@example.com", "display_name": "Bob", "password": "secret1"},
        )

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "User already exists"}

    async def test_validation_handler(self, client: httpx.AsyncClient):
        response = await client.post("/register", json={"email": "bob@example.com"})

        assert response.status_code == 400
        body = response.json()
        assert set(body["errors"]) == {"display_name", "password"}

    @pytest.mark.parametrize(
        "error,status",
        [
            (ValidationError({"email": "Email is required"}), 400),
            (AuthError(), 401),
            (NotFoundError(), 404),
            (ConflictError(), 409),
            (StorageError(), 500),
        ],
    )
    def test_status_for(self, error, status):
        assert status_for(error) == status

    def test_storage_detail_is_hidden(self):
        error = StorageError("connection refused on 10.0.0.5")

        assert error_body(error) == {"success": False, "message": "Internal server error"}
