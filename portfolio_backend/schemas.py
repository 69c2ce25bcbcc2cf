"""
Pydantic schemas for the portfolio API.

Document models describe what the store holds, form models describe what
each endpoint accepts, and envelope models describe what it returns. Wire
names are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

SkillCategory = Literal[
    "frontend", "backend", "programming languages", "database", "others"
]

# Error type for validation messages that already name their field.
FIELD_MESSAGE = "field_message"


def split_list(value: Any) -> Any:
    """Normalize a comma-separated string or a list into a list of strings."""
    if value is None:
        return None
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            items.extend(str(item).split(","))
    else:
        return value
    return [item.strip() for item in items if item.strip()]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


# ---------------------------------------------------------------------------
# Documents


class Asset(CamelModel):
    storage_id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class Document(CamelModel):
    id: Optional[str] = Field(default=None, alias="_id")
    created_at: Optional[float] = None
    updated_at: Optional[float] = None

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Project(Document):
    title: str
    description: str
    git_repo_link: str
    project_link: str
    technologies: List[str] = Field(default_factory=list)
    stack: str
    deployed: str
    project_banner: Asset

    @field_validator("technologies", mode="before")
    @classmethod
    def normalize_technologies(cls, value):
        return split_list(value)


class Skill(Document):
    title: str
    proficiency: int = Field(..., ge=0, le=100)
    category: SkillCategory = "frontend"
    svg: Asset


class SoftwareApplication(Document):
    name: str
    svg: Asset


class Period(CamelModel):
    from_: str = Field(..., alias="from")
    to: str


class Timeline(Document):
    title: str
    description: str
    timeline: Period


MESSAGE_FIELD_LABELS = {"sender_name": "Name", "subject": "Subject", "message": "Message"}


class Message(Document):
    sender_name: str
    subject: str
    message: str

    @field_validator("sender_name", "subject", "message")
    @classmethod
    def at_least_two_characters(cls, value: str, info: ValidationInfo) -> str:
        if len(value) < 2:
            raise PydanticCustomError(
                FIELD_MESSAGE,
                "{label} Must Contain At Least 2 Characters!",
                {"label": MESSAGE_FIELD_LABELS[info.field_name]},
            )
        return value


class Experience(Document):
    role: str
    company: str
    date: str
    desc: str
    skills: List[str] = Field(default_factory=list)
    experience_banner: Asset

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, value):
        return split_list(value)


class UserProfile(Document):
    """The public view of the portfolio owner."""

    full_name: str
    email: str
    phone: str
    about_me: str
    avatar: Asset
    resume: Asset
    portfolio_url: str = Field(..., alias="portfolioURL")
    github_url: Optional[str] = Field(default=None, alias="githubURL")
    instagram_url: Optional[str] = Field(default=None, alias="instagramURL")
    twitter_url: Optional[str] = Field(default=None, alias="twitterURL")
    linked_in_url: Optional[str] = Field(default=None, alias="linkedInURL")
    facebook_url: Optional[str] = Field(default=None, alias="facebookURL")


class User(UserProfile):
    """The stored user, including credentials."""

    password: str
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[float] = None


# ---------------------------------------------------------------------------
# Request forms. Everything is optional at the type level; controllers
# decide which fields are mandatory so they can answer with one message.


class ProjectForm(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    git_repo_link: Optional[str] = None
    project_link: Optional[str] = None
    technologies: Optional[List[str]] = None
    stack: Optional[str] = None
    deployed: Optional[str] = None

    @field_validator("technologies", mode="before")
    @classmethod
    def normalize_technologies(cls, value):
        return split_list(value)


class SkillForm(CamelModel):
    title: Optional[str] = None
    proficiency: Optional[int] = Field(default=None, ge=0, le=100)
    category: Optional[SkillCategory] = None


class SoftwareApplicationForm(CamelModel):
    name: Optional[str] = None


class TimelineForm(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None


class MessageForm(CamelModel):
    sender_name: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ExperienceForm(CamelModel):
    role: Optional[str] = None
    company: Optional[str] = None
    date: Optional[str] = None
    desc: Optional[str] = None
    skills: Optional[List[str]] = None

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, value):
        return split_list(value)


class ProfileForm(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    about_me: Optional[str] = None
    portfolio_url: Optional[str] = Field(default=None, alias="portfolioURL")
    github_url: Optional[str] = Field(default=None, alias="githubURL")
    instagram_url: Optional[str] = Field(default=None, alias="instagramURL")
    twitter_url: Optional[str] = Field(default=None, alias="twitterURL")
    linked_in_url: Optional[str] = Field(default=None, alias="linkedInURL")
    facebook_url: Optional[str] = Field(default=None, alias="facebookURL")


class RegisterForm(ProfileForm):
    password: Optional[str] = None


class LoginForm(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdatePasswordForm(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_new_password: Optional[str] = None


class ForgotPasswordForm(CamelModel):
    email: Optional[str] = None


class ResetPasswordForm(CamelModel):
    password: Optional[str] = None
    confirm_password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response envelopes


class Envelope(CamelModel):
    success: bool = True
    message: Optional[str] = None


class ErrorEnvelope(Envelope):
    success: bool = False
    message: str


class ProjectEnvelope(Envelope):
    project: Project


class ProjectListEnvelope(Envelope):
    projects: List[Project]


class SkillEnvelope(Envelope):
    skill: Skill


class SkillListEnvelope(Envelope):
    skills: List[Skill]


class SoftwareApplicationEnvelope(Envelope):
    software_application: SoftwareApplication


class SoftwareApplicationListEnvelope(Envelope):
    software_applications: List[SoftwareApplication]


class TimelineEnvelope(Envelope):
    timeline: Timeline


class TimelineListEnvelope(Envelope):
    timelines: List[Timeline]


class MessageEnvelope(Envelope):
    data: Message


class MessageListEnvelope(Envelope):
    messages: List[Message]


class ExperienceEnvelope(Envelope):
    experience: Experience


class ExperienceListEnvelope(Envelope):
    experiences: List[Experience]


class UserEnvelope(Envelope):
    user: UserProfile


class AuthEnvelope(UserEnvelope):
    token: str
