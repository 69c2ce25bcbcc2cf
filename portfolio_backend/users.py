"""
The portfolio owner's account: registration, login, profile and passwords.

Profile updates and registration reuse the generic resource controller so
avatar and resume follow the same upload/compensate/release ordering as
every other asset.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from typing import Dict, Optional

from fastapi import Depends
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from portfolio_backend import schemas
from portfolio_backend.assets import AssetManager
from portfolio_backend.auth import USERS, hash_password, verify_password
from portfolio_backend.config import Settings
from portfolio_backend.controllers import AssetSlot, ResourceController, ResourceKind
from portfolio_backend.db import DocumentStore
from portfolio_backend.dependencies import (
    get_app_settings,
    get_asset_manager,
    get_mailer,
    get_store,
)
from portfolio_backend.errors import (
    AuthenticationError,
    DuplicateKeyError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from portfolio_backend.mailer import Mailer
from portfolio_backend.schemas import User, UserProfile

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
RESET_TOKEN_TTL_SECONDS = 15 * 60

USER = ResourceKind(
    collection=USERS,
    model=schemas.User,
    label="User",
    required=(
        "full_name",
        "email",
        "phone",
        "about_me",
        "password",
        "portfolio_url",
    ),
    assets=(
        AssetSlot(
            attribute="avatar",
            upload_field="avatar",
            folder="PORTFOLIO AVATAR",
            prefix="Profile_Image",
            missing_message="Avatar Required!",
        ),
        AssetSlot(
            attribute="resume",
            upload_field="resume",
            folder="PORTFOLIO RESUME",
            prefix="Resume_Image",
            missing_message="Resume Required!",
        ),
    ),
)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def public_profile(user: User) -> UserProfile:
    return UserProfile.model_validate(user.model_dump(by_alias=True))


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password Must Contain At Least {MIN_PASSWORD_LENGTH} Characters!"
        )


class UserController(ResourceController[User]):
    def __init__(
        self,
        store: DocumentStore,
        assets: AssetManager,
        mailer: Mailer,
        settings: Settings,
    ):
        super().__init__(USER, store, assets)
        self.mailer = mailer
        self.settings = settings

    def fields_from_form(self, form: BaseModel) -> dict:
        fields = super().fields_from_form(form)
        if "password" in fields:
            fields["password"] = hash_password(fields["password"])
        return fields

    def register(self, form: schemas.RegisterForm, files: Dict[str, UploadFile]) -> User:
        if form.password:
            _check_password_length(form.password)
        if form.email and self.store.find_one(USERS, email=form.email):
            raise DuplicateKeyError({"email": form.email})
        user = self.create(form, files)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, form: schemas.LoginForm) -> User:
        if not form.email or not form.password:
            raise ValidationError("Provide Email And Password!")
        document = self.store.find_one(USERS, email=form.email)
        if document is None:
            raise AuthenticationError("Invalid Email Or Password!")
        user = self._build(document)
        if not verify_password(form.password, user.password):
            raise AuthenticationError("Invalid Email Or Password!")
        return user

    def portfolio_owner(self) -> User:
        user_id: Optional[str] = self.settings.portfolio_user_id
        if user_id:
            document = self.store.get(USERS, user_id)
        else:
            documents = self.store.find(USERS, sort=("createdAt", 1))
            document = documents[0] if documents else None
        if document is None:
            raise NotFoundError("User Not Found!")
        return self._build(document)

    def update_profile(
        self, user: User, form: schemas.ProfileForm, files: Dict[str, UploadFile]
    ) -> User:
        return self.update(user.id, form, files)

    def update_password(self, user: User, form: schemas.UpdatePasswordForm) -> None:
        if not form.current_password or not form.new_password or not form.confirm_new_password:
            raise ValidationError("Please Fill All Fields.")
        if not verify_password(form.current_password, user.password):
            raise ValidationError("Incorrect Current Password!")
        if form.new_password != form.confirm_new_password:
            raise ValidationError("New Password And Confirm New Password Do Not Match!")
        _check_password_length(form.new_password)
        self.store.update(USERS, user.id, {"password": hash_password(form.new_password)})

    def forgot_password(self, form: schemas.ForgotPasswordForm) -> str:
        """Mail a reset link and return the address it went to."""
        if not form.email:
            raise ValidationError("Please Provide Your Email!")
        document = self.store.find_one(USERS, email=form.email)
        if document is None:
            raise NotFoundError("User Not Found!")
        user = self._build(document)

        token = secrets.token_hex(20)
        self.store.update(
            USERS,
            user.id,
            {
                "resetPasswordToken": hash_reset_token(token),
                "resetPasswordExpire": time.time() + RESET_TOKEN_TTL_SECONDS,
            },
        )
        link = f"{(self.settings.dashboard_url or '').rstrip('/')}/password/reset/{token}"
        body = (
            "\nHello! We've received a request to reset your password for your "
            "Personal Portfolio Dashboard account. To reset your password, please "
            f"click the link below or paste it into your browser:\n\n {link}\n\n"
            "If you did not request a password reset, please ignore this email. "
            "Your account will remain secure.\n\nThank you,\n"
            "Personal Portfolio Dashboard Team"
        )
        try:
            self.mailer.send(
                user.email, "Personal Portfolio Dashboard Password Recovery", body
            )
        except Exception as exc:
            logger.error("Password reset mail to %s failed: %s", user.email, exc)
            self.store.update(
                USERS,
                user.id,
                {"resetPasswordToken": None, "resetPasswordExpire": None},
            )
            raise InternalError(str(exc) or "Failed to send email") from exc
        return user.email

    def reset_password(self, token: str, form: schemas.ResetPasswordForm) -> User:
        document = self.store.find_one(USERS, resetPasswordToken=hash_reset_token(token))
        expire = (document or {}).get("resetPasswordExpire")
        if document is None or expire is None or expire <= time.time():
            raise ValidationError(
                "Reset password token is invalid or has been expired. Please try again!"
            )
        if not form.password or form.password != form.confirm_password:
            raise ValidationError("Password & Confirm Password do not match!")
        _check_password_length(form.password)
        stored = self.store.update(
            USERS,
            document["_id"],
            {
                "password": hash_password(form.password),
                "resetPasswordToken": None,
                "resetPasswordExpire": None,
            },
        )
        return self._build(stored)


def get_user_controller(
    store: DocumentStore = Depends(get_store),
    assets: AssetManager = Depends(get_asset_manager),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_app_settings),
) -> UserController:
    return UserController(store, assets, mailer, settings)
