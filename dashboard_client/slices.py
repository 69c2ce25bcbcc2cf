"""
Per-resource dashboard state.

Every operation moves its slice through pending -> fulfilled or
pending -> rejected. Mutations re-fetch the resource list on success, so a
slice always shows what the server holds after the last successful call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

from dashboard_client.api import ApiError, PortfolioApi

MISSING_FIELDS = "Please Provide All The Required Fields!"


@dataclass
class SliceState:
    items: list = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    message: Optional[str] = None
    refresh_error: Optional[str] = None


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


def _form_value(value):
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


class ResourceSlice:
    """State and operations for one resource list (projects, skills, ...)."""

    def __init__(
        self,
        api: PortfolioApi,
        resource: str,
        list_key: str,
        label: str,
        *,
        required: Sequence[str] = (),
        file_fields: Sequence[str] = (),
        updatable: bool = False,
        creatable: bool = True,
    ):
        self.api = api
        self.resource = resource
        self.list_key = list_key
        self.label = label
        self.required = tuple(required)
        self.file_fields = tuple(file_fields)
        self.updatable = updatable
        self.creatable = creatable
        self.state = SliceState()

    # -- transitions -------------------------------------------------------

    def _pending(self) -> None:
        self.state.loading = True
        self.state.error = None
        self.state.refresh_error = None

    def _fulfilled(self, items: list, message: Optional[str] = None) -> None:
        self.state.loading = False
        self.state.items = items
        if message:
            self.state.message = message

    def _rejected(self, error: str) -> None:
        self.state.loading = False
        self.state.error = error

    def _run(self, action: Optional[Callable[[], None]], message: Optional[str]) -> bool:
        """
        Run a mutation, then re-fetch the list. A failed re-fetch after a
        successful mutation keeps the mutation's success and the previous
        items, and is reported in ``refresh_error``.
        """
        self._pending()
        if action is not None:
            try:
                action()
            except ApiError as exc:
                self._rejected(exc.message)
                return False
            if message:
                self.state.message = message
        try:
            items = self._fetch()
        except ApiError as exc:
            if action is None:
                self._rejected(exc.message)
                return False
            self.state.loading = False
            self.state.refresh_error = exc.message
            return True
        self._fulfilled(items, message)
        return True

    # -- operations --------------------------------------------------------

    def _fetch(self) -> list:
        body = self.api.get(f"/{self.resource}/getall")
        return body.get(self.list_key, [])

    def fetch_all(self) -> bool:
        return self._run(None, None)

    def _check(self, fields: dict, files: Optional[dict], required: Sequence[str]) -> bool:
        missing = [name for name in required if _blank(fields.get(name))]
        missing += [name for name in self.file_fields if not (files or {}).get(name)]
        if missing:
            self._rejected(MISSING_FIELDS)
            return False
        return True

    def _send(self, method: str, path: str, fields: dict, files: Optional[dict]) -> None:
        if files:
            data = {k: _form_value(v) for k, v in fields.items() if not _blank(v)}
            self.api.request(method, path, data=data, files=files)
        else:
            self.api.request(method, path, json=fields)

    def add(self, fields: dict, files: Optional[dict] = None) -> bool:
        if not self.creatable:
            raise ValueError(f"{self.label} entries cannot be added from the dashboard")
        if not self._check(fields, files, self.required):
            return False
        return self._run(
            lambda: self._send("POST", f"/{self.resource}/add", fields, files),
            f"{self.label} Added Successfully!",
        )

    def update(self, doc_id: str, fields: dict, files: Optional[dict] = None) -> bool:
        if not self.updatable:
            raise ValueError(f"{self.label} entries cannot be updated")
        changes = {k: v for k, v in fields.items() if not _blank(v)}
        if not changes and not files:
            self._rejected(MISSING_FIELDS)
            return False
        return self._run(
            lambda: self._send("PUT", f"/{self.resource}/update/{doc_id}", changes, files),
            f"{self.label} Updated Successfully!",
        )

    def delete(self, doc_id: str) -> bool:
        return self._run(
            lambda: self.api.delete(f"/{self.resource}/delete/{doc_id}"),
            f"{self.label} Deleted Successfully!",
        )

    def clear_errors(self) -> None:
        self.state.error = None
        self.state.refresh_error = None

    def reset(self) -> None:
        self.state.message = None


@dataclass
class UserState:
    user: dict = field(default_factory=dict)
    is_authenticated: bool = False
    is_updated: bool = False
    loading: bool = False
    error: Optional[str] = None
    message: Optional[str] = None


class UserSlice:
    def __init__(self, api: PortfolioApi):
        self.api = api
        self.state = UserState()

    def _signing_in(self) -> None:
        self.state.loading = True
        self.state.is_authenticated = False
        self.state.user = {}
        self.state.error = None

    def _signed_in(self, user: dict) -> None:
        self.state.loading = False
        self.state.is_authenticated = True
        self.state.user = user
        self.state.error = None

    def _sign_in_failed(self, error: str) -> None:
        self.state.loading = False
        self.state.is_authenticated = False
        self.state.user = {}
        self.state.error = error

    def login(self, email: str, password: str) -> bool:
        if _blank(email) or _blank(password):
            self.state.error = "Provide Email And Password!"
            return False
        self._signing_in()
        try:
            body = self.api.post("/user/login", json={"email": email, "password": password})
        except ApiError as exc:
            self._sign_in_failed(exc.message)
            return False
        self._signed_in(body["user"])
        return True

    def get_user(self) -> bool:
        self._signing_in()
        try:
            body = self.api.get("/user/me")
        except ApiError as exc:
            self._sign_in_failed(exc.message)
            return False
        self._signed_in(body["user"])
        return True

    def logout(self) -> bool:
        try:
            body = self.api.get("/user/logout")
        except ApiError as exc:
            # Keep the current session as it is.
            self.state.loading = False
            self.state.error = exc.message
            return False
        self.api.token = None
        self.state.loading = False
        self.state.is_authenticated = False
        self.state.user = {}
        self.state.error = None
        self.state.message = body.get("message")
        return True

    def _updating(self) -> None:
        self.state.loading = True
        self.state.is_updated = False
        self.state.message = None
        self.state.error = None

    def _updated(self, message: Optional[str]) -> None:
        self.state.loading = False
        self.state.is_updated = True
        self.state.message = message
        self.state.error = None

    def _update_failed(self, error: str) -> None:
        self.state.loading = False
        self.state.is_updated = False
        self.state.message = None
        self.state.error = error

    def update_profile(self, fields: dict, files: Optional[dict] = None) -> bool:
        self._updating()
        changes = {k: v for k, v in fields.items() if not _blank(v)}
        try:
            if files:
                body = self.api.put(
                    "/user/me/profile/update",
                    data={k: _form_value(v) for k, v in changes.items()},
                    files=files,
                )
            else:
                body = self.api.put("/user/me/profile/update", json=changes)
        except ApiError as exc:
            self._update_failed(exc.message)
            return False
        self.state.user = body.get("user", self.state.user)
        self._updated(body.get("message"))
        return True

    def update_password(
        self, current_password: str, new_password: str, confirm_new_password: str
    ) -> bool:
        if any(_blank(v) for v in (current_password, new_password, confirm_new_password)):
            self._update_failed("Please Fill All Fields.")
            return False
        self._updating()
        try:
            body = self.api.put(
                "/user/password/update",
                json={
                    "currentPassword": current_password,
                    "newPassword": new_password,
                    "confirmNewPassword": confirm_new_password,
                },
            )
        except ApiError as exc:
            self._update_failed(exc.message)
            return False
        self._updated(body.get("message"))
        return True

    def reset_profile(self) -> None:
        self.state.error = None
        self.state.is_updated = False
        self.state.message = None

    def clear_errors(self) -> None:
        self.state.error = None


@dataclass
class PasswordResetState:
    loading: bool = False
    error: Optional[str] = None
    message: Optional[str] = None


class PasswordResetSlice:
    def __init__(self, api: PortfolioApi):
        self.api = api
        self.state = PasswordResetState()

    def _call(self, action: Callable[[], dict]) -> bool:
        self.state.loading = True
        self.state.error = None
        self.state.message = None
        try:
            body = action()
        except ApiError as exc:
            self.state.loading = False
            self.state.error = exc.message
            return False
        self.state.loading = False
        self.state.message = body.get("message")
        return True

    def forgot_password(self, email: str) -> bool:
        return self._call(lambda: self.api.post("/user/password/forgot", json={"email": email}))

    def reset_password(self, token: str, password: str, confirm_password: str) -> bool:
        return self._call(
            lambda: self.api.put(
                f"/user/password/reset/{token}",
                json={"password": password, "confirmPassword": confirm_password},
            )
        )

    def clear_errors(self) -> None:
        self.state.error = None


class DashboardStore:
    """All dashboard slices over one API client."""

    def __init__(self, api: PortfolioApi):
        self.api = api
        self.user = UserSlice(api)
        self.password_reset = PasswordResetSlice(api)
        self.experiences = ResourceSlice(
            api,
            "experience",
            "experiences",
            "Experience",
            required=("role", "company", "date", "desc", "skills"),
            file_fields=("experienceBanner",),
            updatable=True,
        )
        self.projects = ResourceSlice(
            api,
            "project",
            "projects",
            "Project",
            required=(
                "title",
                "description",
                "gitRepoLink",
                "projectLink",
                "stack",
                "technologies",
                "deployed",
            ),
            file_fields=("projectBanner",),
            updatable=True,
        )
        self.skills = ResourceSlice(
            api,
            "skill",
            "skills",
            "Skill",
            required=("title", "proficiency", "category"),
            file_fields=("svg",),
            updatable=True,
        )
        self.software_applications = ResourceSlice(
            api,
            "software_application",
            "softwareApplications",
            "Software Application",
            required=("name",),
            file_fields=("svg",),
        )
        self.timelines = ResourceSlice(
            api,
            "timeline",
            "timelines",
            "Timeline",
            required=("title", "description", "from", "to"),
        )
        self.messages = ResourceSlice(
            api, "message", "messages", "Message", creatable=False
        )

    @property
    def slices(self) -> Dict[str, ResourceSlice]:
        return {
            "experiences": self.experiences,
            "projects": self.projects,
            "skills": self.skills,
            "software_applications": self.software_applications,
            "timelines": self.timelines,
            "messages": self.messages,
        }
