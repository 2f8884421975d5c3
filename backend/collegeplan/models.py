"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Join results are composed by the repositories (see `projections`), so
tables declare foreign keys but no ORM relationships.
"""

from typing import Any, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A registered student account.

    `password` holds whatever the configured password scheme produced;
    with the default `plaintext` scheme that is the submitted password.
    """
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    email: str = Field(index=True, nullable=False, unique=True)
    password: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    gpa: Optional[float] = None
    graduation_year: Optional[int] = None
    grade_level: str  # freshman, sophomore, junior, senior
    school_name: Optional[str] = None
    career_goals: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class Major(SQLModel, table=True):
    __tablename__ = "majors"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)


class UserMajor(SQLModel, table=True):
    """Join row linking a user to a major they are interested in."""
    __tablename__ = "user_majors"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    major_id: int = Field(foreign_key="majors.id")


class Resume(SQLModel, table=True):
    """Structured resume blocks for a single user.

    One resume per user is kept by the repository (upsert by `user_id`),
    not by a store constraint.
    """
    __tablename__ = "resumes"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    personal_info: Any = Field(sa_column=Column(JSON, nullable=False))
    education: Any = Field(sa_column=Column(JSON, nullable=False))
    activities: Any = Field(sa_column=Column(JSON, nullable=False))
    awards: Any = Field(sa_column=Column(JSON, nullable=False))
    work_experience: Any = Field(sa_column=Column(JSON, nullable=False))
    skills: Any = Field(sa_column=Column(JSON, nullable=False))
    essays: Any = Field(sa_column=Column(JSON, nullable=False))
    score: Optional[int] = 0
    updated_at: datetime = Field(default_factory=_now)


class College(SQLModel, table=True):
    __tablename__ = "colleges"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    location: str
    acceptance_rate: Optional[float] = None
    average_gpa: Optional[float] = None
    sat_range: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    act_range: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    tuition: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[Any] = Field(default=None, sa_column=Column(JSON))


class UserCollege(SQLModel, table=True):
    """A college on a user's list with application status and priority."""
    __tablename__ = "user_colleges"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    college_id: int = Field(foreign_key="colleges.id")
    status: str  # interested, applied, accepted, rejected
    priority: Optional[int] = 0
    match_percentage: Optional[int] = None
    created_at: datetime = Field(default_factory=_now)


class Feedback(SQLModel, table=True):
    """Feedback left by `reviewer_id` about `user_id`'s materials."""
    __tablename__ = "feedback"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    reviewer_id: int = Field(foreign_key="users.id")
    type: str  # mentor, peer, counselor
    content: str
    rating: Optional[int] = None
    target_section: Optional[str] = None  # resume, essay, profile
    is_public: Optional[bool] = False
    created_at: datetime = Field(default_factory=_now)


class Deadline(SQLModel, table=True):
    __tablename__ = "deadlines"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    college_id: Optional[int] = Field(default=None, foreign_key="colleges.id")
    title: str
    description: Optional[str] = None
    due_date: datetime
    type: str  # application, scholarship, test, document
    is_completed: Optional[bool] = False
    created_at: datetime = Field(default_factory=_now)


class ForumPost(SQLModel, table=True):
    """A discussion thread.

    `replies` is a cached count kept in step with `forum_replies` by
    `ForumRepository.create_reply`.
    """
    __tablename__ = "forum_posts"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id")
    title: str
    content: str
    category: str = Field(index=True)
    is_public: Optional[bool] = True
    likes: Optional[int] = 0
    replies: int = 0
    created_at: datetime = Field(default_factory=_now)


class ForumReply(SQLModel, table=True):
    __tablename__ = "forum_replies"
    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="forum_posts.id", index=True)
    user_id: int = Field(foreign_key="users.id")
    content: str
    likes: Optional[int] = 0
    created_at: datetime = Field(default_factory=_now)


class Document(SQLModel, table=True):
    __tablename__ = "documents"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    name: str
    type: str  # transcript, recommendation, essay
    url: str
    size: Optional[int] = None
    uploaded_at: datetime = Field(default_factory=_now)


class Resource(SQLModel, table=True):
    """A catalog entry: summer program, competition, scholarship, course..."""
    __tablename__ = "resources"
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False, unique=True)
    description: str
    type: str
    category: str
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    deadline: Optional[str] = None
    cost: Optional[str] = None
    difficulty: str  # beginner, intermediate, advanced
    url: Optional[str] = None
    is_premium: Optional[bool] = False
    created_at: datetime = Field(default_factory=_now)


class GradeLevel(SQLModel, table=True):
    __tablename__ = "grade_levels"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)


# Tables below have no routes yet.

class UserResourceView(SQLModel, table=True):
    __tablename__ = "user_resource_views"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id")
    resource_id: int = Field(foreign_key="resources.id")
    viewed_at: datetime = Field(default_factory=_now)


class Tag(SQLModel, table=True):
    __tablename__ = "tags"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)


class ResourceTag(SQLModel, table=True):
    __tablename__ = "resource_tags"
    id: Optional[int] = Field(default=None, primary_key=True)
    resource_id: int = Field(foreign_key="resources.id")
    tag_id: int = Field(foreign_key="tags.id")


class Eligible(SQLModel, table=True):
    __tablename__ = "eligibles"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)


class ResourceEligible(SQLModel, table=True):
    __tablename__ = "resource_eligibles"
    id: Optional[int] = Field(default=None, primary_key=True)
    resource_id: int = Field(foreign_key="resources.id")
    eligible_id: int = Field(foreign_key="eligibles.id")


class GradeGoal(SQLModel, table=True):
    __tablename__ = "grade_goals"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id")
    grade_level: str
    goal_type: str  # academic, extracurricular, test_prep, college_prep
    title: str
    description: Optional[str] = None
    target_date: Optional[datetime] = None
    is_completed: Optional[bool] = False
    priority: Optional[int] = 1  # 1-5
    created_at: datetime = Field(default_factory=_now)


class GradeMilestone(SQLModel, table=True):
    __tablename__ = "grade_milestones"
    id: Optional[int] = Field(default=None, primary_key=True)
    grade_level: str
    category: str
    title: str
    description: str
    recommended_timing: Optional[str] = None  # fall, spring, summer
    is_required: Optional[bool] = False
    order: Optional[int] = 0


class UserMilestone(SQLModel, table=True):
    __tablename__ = "user_milestones"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id")
    milestone_id: int = Field(foreign_key="grade_milestones.id")
    is_completed: Optional[bool] = False
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
