"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the college planning backend.
Controllers are intentionally thin: they accept requests, delegate to
repositories and services, and return JSON responses. Every error
response has the shape `{"message": str}`.

Endpoints implemented:
- POST /api/auth/register, POST /api/auth/login, DELETE /api/auth/delete-account
- GET /api/user/detail
- GET/PUT /api/users/{id}
- GET /api/resumes/{user_id}, POST /api/resumes, PUT /api/resumes/{user_id}
- GET/POST /api/colleges, GET /api/colleges/{id}
- GET/POST /api/users/{user_id}/colleges, PUT/DELETE /api/users/{user_id}/colleges/{college_id}
- GET /api/users/{user_id}/feedback, POST /api/feedback
- GET /api/users/{user_id}/deadlines, POST /api/deadlines, PUT /api/deadlines/{id}
- GET/POST /api/forum/posts, GET /api/forum/posts/{id}, POST /api/forum/posts/{id}/replies
- GET/POST /api/users/{user_id}/documents
- POST /api/major/create-major, GET /api/major/get-all-majors
- POST /api/resource/create-resource, GET /api/resource/get-all-resources
- POST/GET /api/grade-level
"""

from typing import Callable, Optional
from fastapi import FastAPI, Depends, Query, Request, Security
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import models, projections, repositories
from .auth import access_token_header, get_auth_service, get_current_user, get_owner_check
from .config import settings
from .errors import AppError, InternalError, NotFound, Unauthorized, ValidationFailed
from .schemas import (
    CollegeIn, DeadlineIn, DeadlineUpdate, DocumentIn, FeedbackIn, ForumPostIn,
    ForumReplyIn, LoginIn, LoginOut, NameIn, RegisterIn, ResourceIn, ResumeIn,
    ResumeUpdate, UserCollegeIn, UserCollegeUpdate, UserUpdate,
)
from .services import AuthService

app = FastAPI(title="College Planner API")
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("collegeplan.api")

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    context = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else "unknown",
    }
    try:
        response = await call_next(request)
    except Exception:
        context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", json.dumps(context, ensure_ascii=True))
        raise
    response.headers["X-Request-ID"] = req_id
    context["status_code"] = response.status_code
    context["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info("request_done %s", json.dumps(context, ensure_ascii=True))
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"message": "Invalid request"})
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{loc}: {first['msg']}" if loc else first["msg"]
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("constraint_violation path=%s error=%s", request.url.path, exc.orig)
    return JSONResponse(status_code=400, content={"message": "Request violates a data constraint"})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("store_error path=%s", request.url.path)
    err = InternalError()
    return JSONResponse(status_code=err.status_code, content={"message": err.message})


# -- auth --------------------------------------------------------------

@app.post('/api/auth/register', status_code=201)
def register(payload: RegisterIn, auth: AuthService = Depends(get_auth_service)):
    """Create an account. The response never includes the password."""
    user = auth.register(payload)
    return {'user': auth.user_repo.profile_by_email(user.email)}


@app.post('/api/auth/login', response_model=LoginOut)
def login(payload: LoginIn, auth: AuthService = Depends(get_auth_service)):
    """Check credentials and return the user's profile with an access token.

    The token goes in the `accesstoken` header of later requests.
    """
    result = auth.authenticate(payload.email, payload.password)
    if not result:
        raise Unauthorized('Invalid credentials')
    profile, token = result
    return LoginOut(user=profile, access_token=token)


@app.delete('/api/auth/delete-account')
def delete_account(
    token: Optional[str] = Security(access_token_header),
    auth: AuthService = Depends(get_auth_service),
):
    """Delete the account identified by the `accesstoken` header."""
    auth.delete_account(token)
    return Response(status_code=200)


@app.get('/api/user/detail', response_model=projections.UserProfile)
def user_detail(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    profile = repositories.UserRepository(db).profile_by_email(user.email)
    if not profile:
        raise NotFound('User not found')
    return profile


# -- users -------------------------------------------------------------

@app.get('/api/users/{user_id}', response_model=projections.UserOut)
def get_user(user_id: int, db: Session = Depends(get_session)):
    user = repositories.UserRepository(db).get(user_id)
    if not user:
        raise NotFound('User not found')
    return projections.user_out(user)


@app.put('/api/users/{user_id}', response_model=projections.UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    """Patch profile fields; omitted fields keep their stored values."""
    check_owner(user_id)
    user = repositories.UserRepository(db).update(user_id, payload.model_dump(exclude_unset=True))
    if not user:
        raise NotFound('User not found')
    return projections.user_out(user)


# -- resumes -----------------------------------------------------------

@app.get('/api/resumes/{user_id}')
def get_resume(user_id: int, db: Session = Depends(get_session)):
    resume = repositories.ResumeRepository(db).get(user_id)
    if not resume:
        raise NotFound('Resume not found')
    return resume


@app.post('/api/resumes', status_code=201)
def create_resume(
    payload: ResumeIn,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    """Store the user's resume, replacing any previous one."""
    check_owner(payload.user_id)
    return repositories.ResumeRepository(db).upsert(models.Resume(**payload.model_dump()))


@app.put('/api/resumes/{user_id}')
def update_resume(
    user_id: int,
    payload: ResumeUpdate,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    check_owner(user_id)
    resume = repositories.ResumeRepository(db).update(user_id, payload.model_dump(exclude_unset=True))
    if not resume:
        raise NotFound('Resume not found')
    return resume


# -- colleges ----------------------------------------------------------

@app.get('/api/colleges')
def list_colleges(
    limit: Optional[int] = Query(default=None, ge=1),
    search: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """List colleges alphabetically; `search` is a case-sensitive name substring."""
    return repositories.CollegeRepository(db).find_all(limit=limit, search=search)


@app.get('/api/colleges/{college_id}')
def get_college(college_id: int, db: Session = Depends(get_session)):
    college = repositories.CollegeRepository(db).get(college_id)
    if not college:
        raise NotFound('College not found')
    return college


@app.post('/api/colleges', status_code=201)
def create_college(payload: CollegeIn, db: Session = Depends(get_session)):
    return repositories.CollegeRepository(db).create(models.College(**payload.model_dump()))


@app.get('/api/users/{user_id}/colleges')
def list_user_colleges(user_id: int, db: Session = Depends(get_session)):
    """The user's college list, highest priority first, each with its college."""
    return repositories.UserCollegeRepository(db).list_for_user(user_id)


@app.post('/api/users/{user_id}/colleges', status_code=201)
def add_user_college(
    user_id: int,
    payload: UserCollegeIn,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    check_owner(user_id)
    if not repositories.CollegeRepository(db).get(payload.college_id):
        raise ValidationFailed('College not found')
    link = models.UserCollege(user_id=user_id, **payload.model_dump())
    return repositories.UserCollegeRepository(db).add(link)


@app.put('/api/users/{user_id}/colleges/{college_id}')
def update_user_college(
    user_id: int,
    college_id: int,
    payload: UserCollegeUpdate,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    """Change status, priority or match percentage of a listed college."""
    check_owner(user_id)
    repo = repositories.UserCollegeRepository(db)
    link = repo.find(user_id, college_id)
    if not link:
        raise NotFound("College not found in user's list")
    return repo.update(link.id, payload.model_dump(exclude_unset=True))


@app.delete('/api/users/{user_id}/colleges/{college_id}', status_code=204)
def remove_user_college(
    user_id: int,
    college_id: int,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    check_owner(user_id)
    if not repositories.UserCollegeRepository(db).remove(user_id, college_id):
        raise NotFound("College not found in user's list")
    return Response(status_code=204)


# -- feedback ----------------------------------------------------------

@app.get('/api/users/{user_id}/feedback')
def list_feedback(user_id: int, db: Session = Depends(get_session)):
    """Feedback about the user, newest first, each with its reviewer."""
    return repositories.FeedbackRepository(db).list_for_user(user_id)


@app.post('/api/feedback', status_code=201)
def create_feedback(payload: FeedbackIn, db: Session = Depends(get_session)):
    return repositories.FeedbackRepository(db).create(models.Feedback(**payload.model_dump()))


# -- deadlines ---------------------------------------------------------

@app.get('/api/users/{user_id}/deadlines')
def list_deadlines(user_id: int, db: Session = Depends(get_session)):
    """Deadlines by due date; `college` is null for deadlines not tied to one."""
    return repositories.DeadlineRepository(db).list_for_user(user_id)


@app.post('/api/deadlines', status_code=201)
def create_deadline(
    payload: DeadlineIn,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    check_owner(payload.user_id)
    return repositories.DeadlineRepository(db).create(models.Deadline(**payload.model_dump()))


@app.put('/api/deadlines/{deadline_id}')
def update_deadline(
    deadline_id: int,
    payload: DeadlineUpdate,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    repo = repositories.DeadlineRepository(db)
    deadline = repo.get(deadline_id)
    if not deadline:
        raise NotFound('Deadline not found')
    check_owner(deadline.user_id)
    return repo.update(deadline_id, payload.model_dump(exclude_unset=True))


# -- forum -------------------------------------------------------------

@app.get('/api/forum/posts')
def list_forum_posts(
    category: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_session),
):
    """Newest posts first, optionally restricted to one category."""
    return repositories.ForumRepository(db).list_posts(category=category, limit=limit)


@app.get('/api/forum/posts/{post_id}', response_model=projections.ForumPostDetail)
def get_forum_post(post_id: int, db: Session = Depends(get_session)):
    """A post with its author and every reply in thread order."""
    post = repositories.ForumRepository(db).get_post(post_id)
    if not post:
        raise NotFound('Post not found')
    return post


@app.post('/api/forum/posts', status_code=201)
def create_forum_post(payload: ForumPostIn, db: Session = Depends(get_session)):
    return repositories.ForumRepository(db).create_post(models.ForumPost(**payload.model_dump()))


@app.post('/api/forum/posts/{post_id}/replies', status_code=201)
def create_forum_reply(post_id: int, payload: ForumReplyIn, db: Session = Depends(get_session)):
    reply = models.ForumReply(post_id=post_id, **payload.model_dump())
    created = repositories.ForumRepository(db).create_reply(reply)
    if not created:
        raise NotFound('Post not found')
    return created


# -- documents ---------------------------------------------------------

@app.get('/api/users/{user_id}/documents')
def list_documents(user_id: int, db: Session = Depends(get_session)):
    return repositories.DocumentRepository(db).list_for_user(user_id)


@app.post('/api/users/{user_id}/documents', status_code=201)
def create_document(
    user_id: int,
    payload: DocumentIn,
    db: Session = Depends(get_session),
    check_owner: Callable[[int], None] = Depends(get_owner_check),
):
    """Record a document already uploaded elsewhere (`url`) for the user."""
    check_owner(user_id)
    return repositories.DocumentRepository(db).create(models.Document(user_id=user_id, **payload.model_dump()))


# -- catalog: majors, resources, grade levels ---------------------------

@app.post('/api/major/create-major', status_code=201)
def create_major(payload: NameIn, db: Session = Depends(get_session)):
    return repositories.MajorRepository(db).create(payload.name)


@app.get('/api/major/get-all-majors')
def list_majors(db: Session = Depends(get_session)):
    return repositories.MajorRepository(db).list_all()


@app.post('/api/resource/create-resource', status_code=201)
def create_resource(payload: ResourceIn, db: Session = Depends(get_session)):
    return repositories.ResourceRepository(db).create(models.Resource(**payload.model_dump()))


@app.get('/api/resource/get-all-resources')
def list_resources(
    limit: Optional[int] = Query(default=None, ge=1),
    search: Optional[str] = None,
    db: Session = Depends(get_session),
):
    return repositories.ResourceRepository(db).find_all(limit=limit, search=search)


@app.post('/api/grade-level', status_code=201)
def create_grade_level(payload: NameIn, db: Session = Depends(get_session)):
    return repositories.GradeLevelRepository(db).create(payload.name)


@app.get('/api/grade-level')
def list_grade_levels(db: Session = Depends(get_session)):
    return repositories.GradeLevelRepository(db).list_all()


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
