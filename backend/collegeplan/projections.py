"""Typed read shapes returned by the repositories.

Joined reads (a row together with its related rows) are composed here by
small mapping functions so the shapes can be built and tested without a
database. None of these shapes carry a password.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from . import models


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(_Out):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    gpa: Optional[float] = None
    graduation_year: Optional[int] = None
    grade_level: str
    school_name: Optional[str] = None
    career_goals: Optional[str] = None
    created_at: datetime


class MajorOut(_Out):
    id: int
    name: str


class UserProfile(UserOut):
    """A user with their interested majors resolved, in link order."""
    interested_majors: List[MajorOut] = []


class CollegeOut(_Out):
    id: int
    name: str
    location: str
    acceptance_rate: Optional[float] = None
    average_gpa: Optional[float] = None
    sat_range: Optional[Any] = None
    act_range: Optional[Any] = None
    tuition: Optional[int] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[Any] = None


class UserCollegeView(_Out):
    id: int
    user_id: int
    college_id: int
    status: str
    priority: Optional[int] = 0
    match_percentage: Optional[int] = None
    created_at: datetime
    college: CollegeOut


class FeedbackView(_Out):
    id: int
    user_id: int
    reviewer_id: int
    type: str
    content: str
    rating: Optional[int] = None
    target_section: Optional[str] = None
    is_public: Optional[bool] = False
    created_at: datetime
    reviewer: UserOut


class DeadlineView(_Out):
    id: int
    user_id: int
    college_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    due_date: datetime
    type: str
    is_completed: Optional[bool] = False
    created_at: datetime
    college: Optional[CollegeOut] = None


class ForumReplyView(_Out):
    id: int
    post_id: int
    user_id: int
    content: str
    likes: Optional[int] = 0
    created_at: datetime
    user: UserOut


class ForumPostView(_Out):
    id: int
    user_id: int
    title: str
    content: str
    category: str
    is_public: Optional[bool] = True
    likes: Optional[int] = 0
    replies: int = 0
    created_at: datetime
    user: UserOut


class ForumPostDetail(ForumPostView):
    reply_list: List[ForumReplyView] = []


def user_out(user: models.User) -> UserOut:
    return UserOut.model_validate(user)


def user_profile(user: models.User, majors: Iterable[models.Major]) -> UserProfile:
    return UserProfile(
        **user_out(user).model_dump(),
        interested_majors=[MajorOut.model_validate(m) for m in majors],
    )


def user_college_view(link: models.UserCollege, college: models.College) -> UserCollegeView:
    return UserCollegeView(**link.model_dump(), college=CollegeOut.model_validate(college))


def feedback_view(feedback: models.Feedback, reviewer: models.User) -> FeedbackView:
    return FeedbackView(**feedback.model_dump(), reviewer=user_out(reviewer))


def deadline_view(deadline: models.Deadline, college: Optional[models.College] = None) -> DeadlineView:
    """Compose a deadline with its college; a deadline need not reference one."""
    return DeadlineView(
        **deadline.model_dump(),
        college=CollegeOut.model_validate(college) if college is not None else None,
    )


def forum_reply_view(reply: models.ForumReply, author: models.User) -> ForumReplyView:
    return ForumReplyView(**reply.model_dump(), user=user_out(author))


def forum_post_view(post: models.ForumPost, author: models.User) -> ForumPostView:
    return ForumPostView(**post.model_dump(), user=user_out(author))


def forum_post_detail(
    post: models.ForumPost,
    author: models.User,
    replies: Iterable[Tuple[models.ForumReply, models.User]],
) -> ForumPostDetail:
    """Compose a post, its author, and its `(reply, reply_author)` rows in the given order."""
    return ForumPostDetail(
        **forum_post_view(post, author).model_dump(),
        reply_list=[forum_reply_view(r, a) for r, a in replies],
    )
