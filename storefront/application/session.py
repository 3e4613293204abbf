"""Use case: storefront and back-office login flows."""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from logging_config import logger
from storefront.api.resources import AdminAuthAPI, AuthAPI
from storefront.application.results import ActionResult
from storefront.core.auth_store import AuthStore
from storefront.core.exceptions import ApiException, ValidationException
from storefront.core.navigation import Notifier
from storefront.domain.schemas import RegisterForm

MIN_PASSWORD_LENGTH = 6


def validate_passwords(password: str, confirm_password: str) -> None:
    if not password:
        raise ValidationException("Password is required", field="password")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    if password != confirm_password:
        raise ValidationException("Passwords do not match", field="confirm_password")


class SessionService:
    """Login, registration and password flows for both identity slots."""

    def __init__(
        self,
        auth_api: AuthAPI,
        admin_auth_api: AdminAuthAPI,
        auth_store: AuthStore,
        notifier: Notifier,
    ):
        self.auth_api = auth_api
        self.admin_auth_api = admin_auth_api
        self.auth_store = auth_store
        self.notifier = notifier

    async def _call(self, send) -> ActionResult:
        try:
            value = await send()
        except ApiException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message)
        return ActionResult(True, value=value)

    def _reject(self, exc: ValidationException) -> ActionResult:
        self.notifier.error(exc.message)
        return ActionResult(False, exc.message)

    async def login(self, email: str, password: str, remember_me: bool = False) -> ActionResult:
        if not email.strip() or not password:
            return self._reject(ValidationException("Please enter email and password"))
        result = await self._call(lambda: self.auth_api.login(email.strip(), password, remember_me))
        if result.ok:
            self.auth_store.login(result.value.token, result.value.user)
            self.notifier.success("Login successful!")
        return result

    def logout(self) -> None:
        self.auth_store.logout()
        self.notifier.success("Logged out successfully")

    async def register(self, form: RegisterForm | Mapping[str, Any]) -> ActionResult:
        try:
            data = form if isinstance(form, RegisterForm) else RegisterForm.model_validate(dict(form))
        except ValidationError:
            return self._reject(ValidationException("Please fill in all required fields"))
        if not data.email.strip() or not data.first_name.strip() or not data.phone.strip():
            return self._reject(ValidationException("Please fill in all required fields"))
        try:
            validate_passwords(data.password, data.confirm_password)
        except ValidationException as exc:
            return self._reject(exc)

        result = await self._call(lambda: self.auth_api.register(data))
        if result.ok:
            logger.info("Registration submitted; awaiting email verification")
            self.notifier.success(
                result.value.message or "Registration successful! Please verify your email."
            )
        return result

    async def verify_email(self, token: str) -> ActionResult:
        if not token:
            return self._reject(ValidationException("Verification token is missing"))
        return await self._call(lambda: self.auth_api.verify_email(token))

    async def forgot_password(self, email: str) -> ActionResult:
        if not email.strip():
            return self._reject(ValidationException("Please enter your email", field="email"))
        return await self._call(lambda: self.auth_api.forgot_password(email.strip()))

    async def reset_password(self, token: str, password: str, confirm_password: str) -> ActionResult:
        try:
            validate_passwords(password, confirm_password)
        except ValidationException as exc:
            return self._reject(exc)
        result = await self._call(
            lambda: self.auth_api.reset_password(token, password, confirm_password)
        )
        if result.ok:
            self.notifier.success(result.value.message or "Password reset successfully")
        return result

    async def admin_login(self, username: str, password: str) -> ActionResult:
        if not username.strip() or not password:
            return self._reject(ValidationException("Please enter username and password"))
        result = await self._call(lambda: self.admin_auth_api.login(username.strip(), password))
        if result.ok:
            self.auth_store.admin_login(result.value.token, result.value.admin)
            self.notifier.success("Welcome back!")
        return result

    def admin_logout(self) -> None:
        self.auth_store.admin_logout()
