"""Pydantic request/response schemas used by the API.

Create payloads mirror the table columns minus generated fields (`id`,
timestamps). Update payloads make every field optional; handlers pass
only the fields the client actually sent to the repositories.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from .projections import UserProfile

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _as_utc(value: datetime) -> datetime:
    # timestamps sent without an offset are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


def _not_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


class RegisterIn(BaseModel):
    """Payload for account registration."""
    username: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)
    confirm_password: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    gpa: Optional[float] = None
    graduation_year: Optional[int] = None
    grade_level: str
    school_name: Optional[str] = None
    career_goals: Optional[str] = None
    interested_majors: List[int] = []

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginIn(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)


class LoginOut(BaseModel):
    """Authentication response containing the user and an access token."""
    user: UserProfile
    access_token: str


class UserUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    gpa: Optional[float] = None
    graduation_year: Optional[int] = None
    grade_level: Optional[str] = None
    school_name: Optional[str] = None
    career_goals: Optional[str] = None

    @field_validator("username", "email", "first_name", "last_name", "grade_level")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class ResumeIn(BaseModel):
    user_id: int
    personal_info: Any
    education: Any
    activities: Any
    awards: Any
    work_experience: Any
    skills: Any
    essays: Any
    score: Optional[int] = 0


class ResumeUpdate(BaseModel):
    personal_info: Optional[Any] = None
    education: Optional[Any] = None
    activities: Optional[Any] = None
    awards: Optional[Any] = None
    work_experience: Optional[Any] = None
    skills: Optional[Any] = None
    essays: Optional[Any] = None
    score: Optional[int] = None

    @field_validator("personal_info", "education", "activities", "awards", "work_experience", "skills", "essays")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class CollegeIn(BaseModel):
    name: str = Field(min_length=1)
    location: str
    acceptance_rate: Optional[float] = None
    average_gpa: Optional[float] = None
    sat_range: Optional[Any] = None
    act_range: Optional[Any] = None
    tuition: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[Any] = None


class UserCollegeIn(BaseModel):
    college_id: int
    status: str = "interested"
    priority: Optional[int] = 0
    match_percentage: Optional[int] = None


class UserCollegeUpdate(BaseModel):
    status: Optional[str] = None
    priority: Optional[int] = None
    match_percentage: Optional[int] = None

    @field_validator("status")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class FeedbackIn(BaseModel):
    user_id: int
    reviewer_id: int
    type: str
    content: str = Field(min_length=1)
    rating: Optional[int] = None
    target_section: Optional[str] = None
    is_public: Optional[bool] = False


class DeadlineIn(BaseModel):
    user_id: int
    college_id: Optional[int] = None
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: UtcDatetime
    type: str
    is_completed: Optional[bool] = False


class DeadlineUpdate(BaseModel):
    college_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[UtcDatetime] = None
    type: Optional[str] = None
    is_completed: Optional[bool] = None

    @field_validator("title", "due_date", "type")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class ForumPostIn(BaseModel):
    user_id: int
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    category: str
    is_public: Optional[bool] = True


class ForumReplyIn(BaseModel):
    user_id: int
    content: str = Field(min_length=1)


class DocumentIn(BaseModel):
    name: str = Field(min_length=1)
    type: str
    url: str
    size: Optional[int] = None


class ResourceIn(BaseModel):
    title: str = Field(min_length=1)
    description: str
    type: str
    category: str
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    deadline: Optional[str] = None
    cost: Optional[str] = None
    difficulty: str
    url: Optional[str] = None
    is_premium: Optional[bool] = False


class NameIn(BaseModel):
    """Body for catalog entries identified only by a unique name."""
    name: str = Field(min_length=1)
