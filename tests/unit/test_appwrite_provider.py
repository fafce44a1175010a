"""Unit tests for the Appwrite credential provider."""

import json

import httpx
import pytest
import pytest_check as check

from rare_assistant.auth.provider import AppwriteCredentialProvider, AuthUnavailable
from tests.fakes import make_jwt

ENDPOINT = "http://appwrite.test/v1"


class FakeAppwrite:
    """Minimal Appwrite account API keyed on a session cookie."""

    def __init__(self) -> None:
        self.jwt_status = 201
        self.accounts: dict[str, str] = {"dr@example.org": "correct horse"}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        signed_in = "a_session" in request.headers.get("cookie", "")
        path = request.url.path.removeprefix("/v1")

        if path == "/account/sessions/email" and request.method == "POST":
            body = json.loads(request.content)
            if self.accounts.get(body["email"]) != body["password"]:
                return httpx.Response(401, json={"message": "Invalid credentials"})
            return httpx.Response(
                201,
                json={"$id": "session-1"},
                headers={"set-cookie": "a_session_test=secret; Path=/"},
            )
        if path == "/account" and request.method == "POST":
            body = json.loads(request.content)
            if body["email"] in self.accounts:
                return httpx.Response(409, json={"message": "user_already_exists"})
            self.accounts[body["email"]] = body["password"]
            return httpx.Response(
                201, json={"$id": "user-2", "email": body["email"], "name": body["name"]}
            )
        if path == "/account" and request.method == "GET":
            if not signed_in:
                return httpx.Response(401, json={"message": "guests"})
            return httpx.Response(200, json={"$id": "user-1", "email": "dr@example.org"})
        if path == "/account/jwt" and request.method == "POST":
            if not signed_in:
                return httpx.Response(401, json={"message": "guests"})
            if self.jwt_status >= 400:
                return httpx.Response(self.jwt_status, json={"message": "error"})
            return httpx.Response(201, json={"jwt": make_jwt(2_000_000_000)})
        if path == "/account/sessions/current" and request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture
def appwrite() -> FakeAppwrite:
    return FakeAppwrite()


@pytest.fixture
async def provider(appwrite: FakeAppwrite):
    client = httpx.AsyncClient(transport=httpx.MockTransport(appwrite))
    provider = AppwriteCredentialProvider(ENDPOINT, "test-project", client=client)
    yield provider
    await provider.aclose()


class TestSession:
    """Sign-in, session checks and sign-out."""

    async def test_no_session_before_login(self, provider: AppwriteCredentialProvider) -> None:
        assert await provider.has_active_session() is False

    async def test_login_creates_session(
        self, provider: AppwriteCredentialProvider, appwrite: FakeAppwrite
    ) -> None:
        await provider.login("dr@example.org", "correct horse")

        check.is_true(await provider.has_active_session())
        check.equal(appwrite.requests[0].headers["x-appwrite-project"], "test-project")

    async def test_wrong_password_raises(self, provider: AppwriteCredentialProvider) -> None:
        with pytest.raises(AuthUnavailable, match="Invalid email or password"):
            await provider.login("dr@example.org", "wrong")

    async def test_logout_forgets_session(self, provider: AppwriteCredentialProvider) -> None:
        await provider.login("dr@example.org", "correct horse")
        await provider.logout()

        assert await provider.has_active_session() is False


class TestCreateToken:
    """JWT issuing."""

    async def test_issues_jwt(self, provider: AppwriteCredentialProvider) -> None:
        await provider.login("dr@example.org", "correct horse")

        issued = await provider.create_token()

        check.equal(issued.raw, {"jwt": issued.token})
        check.equal(issued.token.count("."), 2)

    async def test_without_session_raises(self, provider: AppwriteCredentialProvider) -> None:
        with pytest.raises(AuthUnavailable, match="HTTP 401"):
            await provider.create_token()

    async def test_server_error_raises(
        self, provider: AppwriteCredentialProvider, appwrite: FakeAppwrite
    ) -> None:
        await provider.login("dr@example.org", "correct horse")
        appwrite.jwt_status = 503

        with pytest.raises(AuthUnavailable):
            await provider.create_token()


class TestSignup:
    """Account creation."""

    async def test_signup_creates_account_and_signs_in(
        self, provider: AppwriteCredentialProvider, appwrite: FakeAppwrite
    ) -> None:
        user = await provider.signup("new@example.org", "s3cret-pass", "Dr New")

        create = appwrite.requests[0]
        check.equal(user["name"], "Dr New")
        check.equal(json.loads(create.content)["userId"], "unique()")
        check.equal(create.headers["x-appwrite-project"], "test-project")
        check.is_true(await provider.has_active_session())

    async def test_existing_email_raises(self, provider: AppwriteCredentialProvider) -> None:
        with pytest.raises(AuthUnavailable, match="already exists"):
            await provider.signup("dr@example.org", "whatever", "Dr Dup")
