"""
HTTP routes for the portfolio API.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from portfolio_backend.auth import (
    clear_session_cookie,
    issue_token,
    require_user,
    set_session_cookie,
)
from portfolio_backend.config import Settings
from portfolio_backend.controllers import (
    EXPERIENCE,
    MESSAGE,
    PROJECT,
    SKILL,
    SOFTWARE_APPLICATION,
    TIMELINE,
    ResourceController,
)
from portfolio_backend.dependencies import (
    get_app_settings,
    get_experience_controller,
    get_message_controller,
    get_project_controller,
    get_skill_controller,
    get_software_application_controller,
    get_timeline_controller,
)
from portfolio_backend.middleware import CatchAsyncErrorsRoute
from portfolio_backend.payloads import Payload, parse_payload
from portfolio_backend.schemas import (
    AuthEnvelope,
    Envelope,
    ExperienceEnvelope,
    ExperienceForm,
    ExperienceListEnvelope,
    ForgotPasswordForm,
    LoginForm,
    MessageEnvelope,
    MessageForm,
    MessageListEnvelope,
    ProfileForm,
    ProjectEnvelope,
    ProjectForm,
    ProjectListEnvelope,
    RegisterForm,
    ResetPasswordForm,
    SkillEnvelope,
    SkillForm,
    SkillListEnvelope,
    SoftwareApplicationEnvelope,
    SoftwareApplicationForm,
    SoftwareApplicationListEnvelope,
    TimelineEnvelope,
    TimelineForm,
    TimelineListEnvelope,
    UpdatePasswordForm,
    User,
    UserEnvelope,
)
from portfolio_backend.users import UserController, get_user_controller, public_profile


def _router(prefix: str, tag: str) -> APIRouter:
    return APIRouter(prefix=prefix, tags=[tag], route_class=CatchAsyncErrorsRoute)


health_router = APIRouter(route_class=CatchAsyncErrorsRoute)


@health_router.get("/", response_model=Envelope)
def health():
    return Envelope(message="Backend is running!")


# ---------------------------------------------------------------------------
# Messages

message_router = _router("/message", "message")


@message_router.post("/send", response_model=MessageEnvelope, status_code=201)
def send_message(
    payload: Payload = Depends(parse_payload(MessageForm)),
    controller: ResourceController = Depends(get_message_controller),
):
    message = controller.create(payload.data, payload.files)
    return MessageEnvelope(message=MESSAGE.messages["created"], data=message)


@message_router.get("/getall", response_model=MessageListEnvelope)
def get_all_messages(
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_message_controller),
):
    return MessageListEnvelope(messages=controller.list())


@message_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_message(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_message_controller),
):
    controller.delete(doc_id)
    return Envelope(message=MESSAGE.messages["deleted"])


# ---------------------------------------------------------------------------
# Projects

project_router = _router("/project", "project")


@project_router.post("/add", response_model=ProjectEnvelope, status_code=201)
def add_project(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(ProjectForm)),
    controller: ResourceController = Depends(get_project_controller),
):
    project = controller.create(payload.data, payload.files)
    return ProjectEnvelope(message=PROJECT.messages["created"], project=project)


@project_router.get("/getall", response_model=ProjectListEnvelope)
def get_all_projects(controller: ResourceController = Depends(get_project_controller)):
    return ProjectListEnvelope(projects=controller.list())


@project_router.get("/get/{doc_id}", response_model=ProjectEnvelope)
def get_single_project(
    doc_id: str, controller: ResourceController = Depends(get_project_controller)
):
    return ProjectEnvelope(project=controller.get(doc_id))


@project_router.put("/update/{doc_id}", response_model=ProjectEnvelope)
def update_project(
    doc_id: str,
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(ProjectForm)),
    controller: ResourceController = Depends(get_project_controller),
):
    project = controller.update(doc_id, payload.data, payload.files)
    return ProjectEnvelope(message=PROJECT.messages["updated"], project=project)


@project_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_project(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_project_controller),
):
    controller.delete(doc_id)
    return Envelope(message=PROJECT.messages["deleted"])


# ---------------------------------------------------------------------------
# Skills

skill_router = _router("/skill", "skill")


@skill_router.post("/add", response_model=SkillEnvelope, status_code=201)
def add_skill(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(SkillForm)),
    controller: ResourceController = Depends(get_skill_controller),
):
    skill = controller.create(payload.data, payload.files)
    return SkillEnvelope(message=SKILL.messages["created"], skill=skill)


@skill_router.get("/getall", response_model=SkillListEnvelope)
def get_all_skills(controller: ResourceController = Depends(get_skill_controller)):
    return SkillListEnvelope(skills=controller.list())


@skill_router.put("/update/{doc_id}", response_model=SkillEnvelope)
def update_skill(
    doc_id: str,
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(SkillForm)),
    controller: ResourceController = Depends(get_skill_controller),
):
    skill = controller.update(doc_id, payload.data, payload.files)
    return SkillEnvelope(message=SKILL.messages["updated"], skill=skill)


@skill_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_skill(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_skill_controller),
):
    controller.delete(doc_id)
    return Envelope(message=SKILL.messages["deleted"])


# ---------------------------------------------------------------------------
# Software applications

software_application_router = _router("/software_application", "software_application")


@software_application_router.post(
    "/add", response_model=SoftwareApplicationEnvelope, status_code=201
)
def add_software_application(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(SoftwareApplicationForm)),
    controller: ResourceController = Depends(get_software_application_controller),
):
    application = controller.create(payload.data, payload.files)
    return SoftwareApplicationEnvelope(
        message=SOFTWARE_APPLICATION.messages["created"],
        software_application=application,
    )


@software_application_router.get(
    "/getall", response_model=SoftwareApplicationListEnvelope
)
def get_all_software_applications(
    controller: ResourceController = Depends(get_software_application_controller),
):
    return SoftwareApplicationListEnvelope(software_applications=controller.list())


@software_application_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_software_application(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_software_application_controller),
):
    controller.delete(doc_id)
    return Envelope(message=SOFTWARE_APPLICATION.messages["deleted"])


# ---------------------------------------------------------------------------
# Timeline

timeline_router = _router("/timeline", "timeline")


@timeline_router.post("/add", response_model=TimelineEnvelope, status_code=201)
def add_timeline(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(TimelineForm)),
    controller: ResourceController = Depends(get_timeline_controller),
):
    timeline = controller.create(payload.data, payload.files)
    return TimelineEnvelope(message=TIMELINE.messages["created"], timeline=timeline)


@timeline_router.get("/getall", response_model=TimelineListEnvelope)
def get_all_timelines(controller: ResourceController = Depends(get_timeline_controller)):
    return TimelineListEnvelope(timelines=controller.list())


@timeline_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_timeline(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_timeline_controller),
):
    controller.delete(doc_id)
    return Envelope(message=TIMELINE.messages["deleted"])


# ---------------------------------------------------------------------------
# Experience

experience_router = _router("/experience", "experience")


@experience_router.post("/add", response_model=ExperienceEnvelope, status_code=201)
def add_experience(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(ExperienceForm)),
    controller: ResourceController = Depends(get_experience_controller),
):
    experience = controller.create(payload.data, payload.files)
    return ExperienceEnvelope(
        message=EXPERIENCE.messages["created"], experience=experience
    )


@experience_router.get("/getall", response_model=ExperienceListEnvelope)
def get_all_experiences(
    controller: ResourceController = Depends(get_experience_controller),
):
    return ExperienceListEnvelope(experiences=controller.list())


@experience_router.put("/update/{doc_id}", response_model=ExperienceEnvelope)
def update_experience(
    doc_id: str,
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(ExperienceForm)),
    controller: ResourceController = Depends(get_experience_controller),
):
    experience = controller.update(doc_id, payload.data, payload.files)
    return ExperienceEnvelope(
        message=EXPERIENCE.messages["updated"], experience=experience
    )


@experience_router.delete("/delete/{doc_id}", response_model=Envelope)
def delete_experience(
    doc_id: str,
    user: User = Depends(require_user),
    controller: ResourceController = Depends(get_experience_controller),
):
    controller.delete(doc_id)
    return Envelope(message=EXPERIENCE.messages["deleted"])


# ---------------------------------------------------------------------------
# User

user_router = _router("/user", "user")


def _signed_in(
    user: User, message: str, response: Response, settings: Settings
) -> AuthEnvelope:
    token = issue_token(user.id, settings)
    set_session_cookie(response, token, settings)
    return AuthEnvelope(message=message, user=public_profile(user), token=token)


@user_router.post("/register", response_model=AuthEnvelope, status_code=201)
def register(
    response: Response,
    payload: Payload = Depends(parse_payload(RegisterForm)),
    controller: UserController = Depends(get_user_controller),
    settings: Settings = Depends(get_app_settings),
):
    user = controller.register(payload.data, payload.files)
    return _signed_in(user, "User Registered Successfully!", response, settings)


@user_router.post("/login", response_model=AuthEnvelope)
def login(
    response: Response,
    payload: Payload = Depends(parse_payload(LoginForm)),
    controller: UserController = Depends(get_user_controller),
    settings: Settings = Depends(get_app_settings),
):
    user = controller.login(payload.data)
    return _signed_in(user, "Logged In Successfully!", response, settings)


@user_router.get("/logout", response_model=Envelope)
def logout(
    response: Response,
    user: User = Depends(require_user),
    settings: Settings = Depends(get_app_settings),
):
    clear_session_cookie(response, settings)
    return Envelope(message="Logged Out Successfully!")


@user_router.get("/me", response_model=UserEnvelope)
def get_user(user: User = Depends(require_user)):
    return UserEnvelope(user=public_profile(user))


@user_router.get("/portfolio/me", response_model=UserEnvelope)
def get_user_for_portfolio(controller: UserController = Depends(get_user_controller)):
    return UserEnvelope(user=public_profile(controller.portfolio_owner()))


@user_router.put("/me/profile/update", response_model=UserEnvelope)
def update_profile(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(ProfileForm)),
    controller: UserController = Depends(get_user_controller),
):
    updated = controller.update_profile(user, payload.data, payload.files)
    return UserEnvelope(
        message="Profile Updated Successfully!", user=public_profile(updated)
    )


@user_router.put("/password/update", response_model=Envelope)
def update_password(
    user: User = Depends(require_user),
    payload: Payload = Depends(parse_payload(UpdatePasswordForm)),
    controller: UserController = Depends(get_user_controller),
):
    controller.update_password(user, payload.data)
    return Envelope(message="Password Updated Successfully!")


@user_router.post("/password/forgot", response_model=Envelope, status_code=201)
def forgot_password(
    payload: Payload = Depends(parse_payload(ForgotPasswordForm)),
    controller: UserController = Depends(get_user_controller),
):
    email = controller.forgot_password(payload.data)
    return Envelope(message=f"Email sent to {email} successfully")


@user_router.put("/password/reset/{token}", response_model=AuthEnvelope)
def reset_password(
    token: str,
    response: Response,
    payload: Payload = Depends(parse_payload(ResetPasswordForm)),
    controller: UserController = Depends(get_user_controller),
    settings: Settings = Depends(get_app_settings),
):
    user = controller.reset_password(token, payload.data)
    return _signed_in(user, "Reset Password Successfully!", response, settings)


api_routers = (
    message_router,
    project_router,
    skill_router,
    software_application_router,
    timeline_router,
    experience_router,
    user_router,
)
