from __future__ import annotations

import pytest

from storefront.application.session import SessionService, validate_passwords
from storefront.core.auth_store import Audience
from storefront.core.exceptions import ValidationException

from factories import ADMIN_TOKEN, USER_TOKEN, make_user

REGISTRATION = {
    "email": "new@example.com",
    "password": "secret1",
    "confirm_password": "secret1",
    "first_name": "Meera",
    "phone": "9000000000",
}


@pytest.fixture
def service(api, auth_store, notifier) -> SessionService:
    return SessionService(api.auth, api.admin_auth, auth_store, notifier)


def test_validate_passwords() -> None:
    validate_passwords("secret1", "secret1")
    with pytest.raises(ValidationException, match="at least 6"):
        validate_passwords("abc", "abc")
    with pytest.raises(ValidationException, match="do not match"):
        validate_passwords("secret1", "secret2")


@pytest.mark.asyncio
async def test_login_fills_user_slot(service, auth_store, notifier) -> None:
    result = await service.login(" asha@example.com ", "secret")

    assert result.ok
    assert auth_store.token_for(Audience.USER) == USER_TOKEN
    assert auth_store.user.email == "asha@example.com"
    assert notifier.last("success") == "Login successful!"


@pytest.mark.asyncio
async def test_rejected_login_shows_server_message(service, auth_store, notifier) -> None:
    result = await service.login("asha@example.com", "wrong")

    assert result.error == "Invalid email or password"
    assert notifier.last("error") == "Invalid email or password"
    assert not auth_store.is_authenticated()


@pytest.mark.asyncio
async def test_blank_credentials_are_not_sent(service, backend) -> None:
    result = await service.login("  ", "")

    assert not result.ok
    assert backend.calls == []


@pytest.mark.asyncio
async def test_password_mismatch_sends_no_request(service, backend, notifier) -> None:
    result = await service.register({**REGISTRATION, "confirm_password": "secret2"})

    assert result.error == "Passwords do not match"
    assert notifier.last("error") == "Passwords do not match"
    assert backend.count("POST", "/api/user/auth/register") == 0


@pytest.mark.asyncio
async def test_missing_required_field_sends_no_request(service, backend) -> None:
    result = await service.register({**REGISTRATION, "phone": " "})

    assert result.error == "Please fill in all required fields"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_register_reports_server_message(service, backend, notifier) -> None:
    result = await service.register(REGISTRATION)

    assert result.ok
    assert notifier.last("success") == "Registration successful! Please verify your email."
    assert backend.count("POST", "/api/user/auth/register") == 1


@pytest.mark.asyncio
async def test_admin_login_leaves_user_slot_alone(service, auth_store) -> None:
    auth_store.login(USER_TOKEN, make_user())

    result = await service.admin_login("root", "secret")

    assert result.ok
    assert auth_store.token_for(Audience.ADMIN) == ADMIN_TOKEN
    assert auth_store.token_for(Audience.USER) == USER_TOKEN


@pytest.mark.asyncio
async def test_rejected_admin_login_uses_error_field(service, auth_store) -> None:
    result = await service.admin_login("root", "nope")

    assert result.error == "Invalid credentials"
    assert not auth_store.is_authenticated(Audience.ADMIN)


@pytest.mark.asyncio
async def test_logouts_are_per_slot(service, auth_store) -> None:
    await service.login("asha@example.com", "secret")
    await service.admin_login("root", "secret")

    service.admin_logout()
    assert auth_store.is_authenticated(Audience.USER)

    service.logout()
    assert not auth_store.is_authenticated(Audience.USER)
