"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
resumes, colleges, forum threads, ...). Single-row lookups return `None`
(or `False` for deletes) when nothing matches; joined reads return the
typed shapes from `projections`. Unique columns are enforced by the
store and surface as `errors.Conflict`.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Any
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, col
from . import models, projections
from .errors import Conflict

COLLEGE_PAGE_SIZE = 50
RESOURCE_PAGE_SIZE = 50
FORUM_PAGE_SIZE = 20


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig).lower()


def _commit_unique(session: Session, message: str) -> None:
    """Commit, turning a unique-constraint violation into `Conflict`.

    Other integrity errors (foreign keys, NOT NULL) are re-raised as is.
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if _is_unique_violation(exc):
            raise Conflict(message) from exc
        raise


def _apply(row, fields: Dict[str, Any]) -> None:
    # only keys the caller actually sent; everything else keeps its value
    for name, value in fields.items():
        setattr(row, name, value)


class UserRepository:
    """CRUD operations for `User` objects and their major interests."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User, major_ids: Iterable[int] = ()) -> models.User:
        """Persist a new user together with their interested-major links.

        Raises `Conflict` if the email or username is already registered;
        nothing is written in that case.
        """
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if _is_unique_violation(exc):
                raise Conflict("User already exists") from exc
            raise
        for major_id in major_ids:
            self.session.add(models.UserMajor(user_id=user.id, major_id=major_id))
        _commit_unique(self.session, "User already exists")
        self.session.refresh(user)
        return user

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def get_by_username(self, username: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get_by_email(self, email: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def interested_majors(self, user_id: int) -> List[models.Major]:
        """Majors linked to `user_id`, in the order the links were created."""
        stmt = (
            select(models.Major)
            .join(models.UserMajor, models.UserMajor.major_id == models.Major.id)
            .where(models.UserMajor.user_id == user_id)
            .order_by(models.UserMajor.id)
        )
        return list(self.session.exec(stmt).all())

    def profile_by_email(self, email: str) -> Optional[projections.UserProfile]:
        """Return the user for `email` with `interested_majors` resolved."""
        user = self.get_by_email(email)
        if not user:
            return None
        return projections.user_profile(user, self.interested_majors(user.id))

    def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[models.User]:
        user = self.get(user_id)
        if not user:
            return None
        _apply(user, fields)
        self.session.add(user)
        _commit_unique(self.session, "Email or username already in use")
        self.session.refresh(user)
        return user

    def delete_by_email(self, email: str) -> bool:
        """Delete the user row for `email`; return False if there was none.

        Rows that still reference the user are not removed; while any exist
        the store rejects the delete with `IntegrityError`.
        """
        user = self.get_by_email(email)
        if not user:
            return False
        self.session.delete(user)
        self.session.commit()
        return True


class MajorRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_name(self, name: str) -> Optional[models.Major]:
        stmt = select(models.Major).where(models.Major.name == name)
        return self.session.exec(stmt).first()

    def create(self, name: str) -> models.Major:
        major = models.Major(name=name)
        self.session.add(major)
        _commit_unique(self.session, "Major already exists")
        self.session.refresh(major)
        return major

    def list_all(self) -> List[models.Major]:
        """All majors, alphabetically."""
        return list(self.session.exec(select(models.Major).order_by(models.Major.name)).all())


class ResumeRepository:
    """One resume per user, addressed by `user_id`."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> Optional[models.Resume]:
        stmt = select(models.Resume).where(models.Resume.user_id == user_id)
        return self.session.exec(stmt).first()

    def upsert(self, resume: models.Resume) -> models.Resume:
        """Store `resume` as the user's only resume (last write wins)."""
        existing = self.get(resume.user_id)
        if existing:
            _apply(existing, resume.model_dump(exclude={"id", "user_id", "updated_at"}))
            existing.updated_at = datetime.now(timezone.utc)
            self.session.add(existing)
            self.session.commit()
            self.session.refresh(existing)
            return existing
        self.session.add(resume)
        self.session.commit()
        self.session.refresh(resume)
        return resume

    def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[models.Resume]:
        """Patch the user's resume; `updated_at` is refreshed on every call."""
        resume = self.get(user_id)
        if not resume:
            return None
        _apply(resume, fields)
        resume.updated_at = datetime.now(timezone.utc)
        self.session.add(resume)
        self.session.commit()
        self.session.refresh(resume)
        return resume


class CollegeRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_all(self, limit: Optional[int] = None, search: Optional[str] = None) -> List[models.College]:
        """Colleges by name, optionally filtered by a case-sensitive name substring."""
        stmt = select(models.College)
        if search:
            stmt = stmt.where(col(models.College.name).contains(search, autoescape=True))
        stmt = stmt.order_by(models.College.name).limit(limit or COLLEGE_PAGE_SIZE)
        return list(self.session.exec(stmt).all())

    def get(self, college_id: int) -> Optional[models.College]:
        return self.session.get(models.College, college_id)

    def create(self, college: models.College) -> models.College:
        self.session.add(college)
        self.session.commit()
        self.session.refresh(college)
        return college


class UserCollegeRepository:
    """A user's college list. Duplicate (user, college) links are not prevented."""
    def __init__(self, session: Session):
        self.session = session

    def list_for_user(self, user_id: int) -> List[projections.UserCollegeView]:
        """Linked colleges, highest priority first; ties keep insertion order."""
        stmt = (
            select(models.UserCollege, models.College)
            .join(models.College, models.UserCollege.college_id == models.College.id)
            .where(models.UserCollege.user_id == user_id)
            .order_by(col(models.UserCollege.priority).desc(), models.UserCollege.id)
        )
        return [projections.user_college_view(link, college) for link, college in self.session.exec(stmt).all()]

    def add(self, link: models.UserCollege) -> models.UserCollege:
        self.session.add(link)
        self.session.commit()
        self.session.refresh(link)
        return link

    def get(self, link_id: int) -> Optional[models.UserCollege]:
        return self.session.get(models.UserCollege, link_id)

    def find(self, user_id: int, college_id: int) -> Optional[models.UserCollege]:
        """The oldest link between `user_id` and `college_id`, if any."""
        stmt = (
            select(models.UserCollege)
            .where(models.UserCollege.user_id == user_id, models.UserCollege.college_id == college_id)
            .order_by(models.UserCollege.id)
        )
        return self.session.exec(stmt).first()

    def update(self, link_id: int, fields: Dict[str, Any]) -> Optional[models.UserCollege]:
        link = self.get(link_id)
        if not link:
            return None
        _apply(link, fields)
        self.session.add(link)
        self.session.commit()
        self.session.refresh(link)
        return link

    def remove(self, user_id: int, college_id: int) -> bool:
        """Remove every link between `user_id` and `college_id`."""
        stmt = select(models.UserCollege).where(
            models.UserCollege.user_id == user_id,
            models.UserCollege.college_id == college_id,
        )
        links = self.session.exec(stmt).all()
        if not links:
            return False
        for link in links:
            self.session.delete(link)
        self.session.commit()
        return True


class FeedbackRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_for_user(self, user_id: int) -> List[projections.FeedbackView]:
        """Feedback about `user_id`, newest first, each with its reviewer."""
        stmt = (
            select(models.Feedback, models.User)
            .join(models.User, models.Feedback.reviewer_id == models.User.id)
            .where(models.Feedback.user_id == user_id)
            .order_by(col(models.Feedback.created_at).desc(), col(models.Feedback.id).desc())
        )
        return [projections.feedback_view(fb, reviewer) for fb, reviewer in self.session.exec(stmt).all()]

    def create(self, feedback: models.Feedback) -> models.Feedback:
        self.session.add(feedback)
        self.session.commit()
        self.session.refresh(feedback)
        return feedback


class DeadlineRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_for_user(self, user_id: int) -> List[projections.DeadlineView]:
        """Deadlines by ascending due date; `college` is None when unlinked."""
        stmt = (
            select(models.Deadline, models.College)
            .outerjoin(models.College, models.Deadline.college_id == models.College.id)
            .where(models.Deadline.user_id == user_id)
            .order_by(models.Deadline.due_date, models.Deadline.id)
        )
        return [projections.deadline_view(d, college) for d, college in self.session.exec(stmt).all()]

    def get(self, deadline_id: int) -> Optional[models.Deadline]:
        return self.session.get(models.Deadline, deadline_id)

    def create(self, deadline: models.Deadline) -> models.Deadline:
        self.session.add(deadline)
        self.session.commit()
        self.session.refresh(deadline)
        return deadline

    def update(self, deadline_id: int, fields: Dict[str, Any]) -> Optional[models.Deadline]:
        deadline = self.get(deadline_id)
        if not deadline:
            return None
        _apply(deadline, fields)
        self.session.add(deadline)
        self.session.commit()
        self.session.refresh(deadline)
        return deadline


class ForumRepository:
    """Forum posts and replies.

    `ForumPost.replies` is only ever changed by `create_reply`, which
    keeps it equal to the number of reply rows for the post.
    """
    def __init__(self, session: Session):
        self.session = session

    def list_posts(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[projections.ForumPostView]:
        """Newest posts first, each with its author."""
        stmt = select(models.ForumPost, models.User).join(models.User, models.ForumPost.user_id == models.User.id)
        if category:
            stmt = stmt.where(models.ForumPost.category == category)
        stmt = stmt.order_by(col(models.ForumPost.created_at).desc(), col(models.ForumPost.id).desc())
        stmt = stmt.limit(limit or FORUM_PAGE_SIZE)
        return [projections.forum_post_view(post, author) for post, author in self.session.exec(stmt).all()]

    def get_post(self, post_id: int) -> Optional[projections.ForumPostDetail]:
        """A post with its author and the full reply thread, oldest reply first."""
        stmt = (
            select(models.ForumPost, models.User)
            .join(models.User, models.ForumPost.user_id == models.User.id)
            .where(models.ForumPost.id == post_id)
        )
        row = self.session.exec(stmt).first()
        if not row:
            return None
        post, author = row
        replies_stmt = (
            select(models.ForumReply, models.User)
            .join(models.User, models.ForumReply.user_id == models.User.id)
            .where(models.ForumReply.post_id == post_id)
            .order_by(models.ForumReply.created_at, models.ForumReply.id)
        )
        return projections.forum_post_detail(post, author, self.session.exec(replies_stmt).all())

    def create_post(self, post: models.ForumPost) -> models.ForumPost:
        post.replies = 0
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def create_reply(self, reply: models.ForumReply) -> Optional[models.ForumReply]:
        """Insert `reply` and bump its post's reply counter in one transaction.

        Returns None without writing anything if the post does not exist.
        """
        if not self.session.get(models.ForumPost, reply.post_id):
            return None
        self.session.add(reply)
        # increment in SQL so concurrent replies cannot overwrite each other
        self.session.exec(
            update(models.ForumPost)
            .where(models.ForumPost.id == reply.post_id)
            .values(replies=models.ForumPost.replies + 1)
        )
        self.session.commit()
        self.session.refresh(reply)
        return reply


class DocumentRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_for_user(self, user_id: int) -> List[models.Document]:
        """Documents for `user_id`, most recently uploaded first."""
        stmt = (
            select(models.Document)
            .where(models.Document.user_id == user_id)
            .order_by(col(models.Document.uploaded_at).desc(), col(models.Document.id).desc())
        )
        return list(self.session.exec(stmt).all())

    def create(self, document: models.Document) -> models.Document:
        self.session.add(document)
        self.session.commit()
        self.session.refresh(document)
        return document


class ResourceRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_title(self, title: str) -> Optional[models.Resource]:
        stmt = select(models.Resource).where(models.Resource.title == title)
        return self.session.exec(stmt).first()

    def find_all(self, limit: Optional[int] = None, search: Optional[str] = None) -> List[models.Resource]:
        """Resources by title, optionally filtered by a case-sensitive title substring."""
        stmt = select(models.Resource)
        if search:
            stmt = stmt.where(col(models.Resource.title).contains(search, autoescape=True))
        stmt = stmt.order_by(models.Resource.title).limit(limit or RESOURCE_PAGE_SIZE)
        return list(self.session.exec(stmt).all())

    def create(self, resource: models.Resource) -> models.Resource:
        self.session.add(resource)
        _commit_unique(self.session, "Resource already exists")
        self.session.refresh(resource)
        return resource


class GradeLevelRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_name(self, name: str) -> Optional[models.GradeLevel]:
        stmt = select(models.GradeLevel).where(models.GradeLevel.name == name)
        return self.session.exec(stmt).first()

    def create(self, name: str) -> models.GradeLevel:
        level = models.GradeLevel(name=name)
        self.session.add(level)
        _commit_unique(self.session, "Grade Level already exists")
        self.session.refresh(level)
        return level

    def list_all(self) -> List[models.GradeLevel]:
        return list(self.session.exec(select(models.GradeLevel).order_by(models.GradeLevel.id)).all())
