from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from ...core.config import Settings
from ...core.security import SESSION_COOKIE, hash_identifier, resolve_authenticated_user
from ...insights import InsightsEngine
from ...metrics import AUTH_EVENTS, USER_API_COUNTER
from ...schemas.analytics import AnalyticsResponse
from ...schemas.auth import (
    AuthSessionInfo,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ThemeResponse,
    ThemeUpdate,
    UserProfile,
)
from ...schemas.journal import JournalEntryModel, JournalListResponse, JournalUpsert
from ...services.passwords import hash_password, needs_rehash, verify_password
from ...services.ratelimit import RateLimiter
from ...services.storage import (
    DuplicateEntryDateError,
    DuplicateUserError,
    EntryNotFoundError,
    StorageService,
)
from ...services.theme import css_class
from ...services.validation import validate_registration
from ...utils.text import has_real_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["core"])


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_insights_engine(request: Request) -> InsightsEngine:
    return request.app.state.insights_engine


def _resolve_range(
    start: date | None,
    end: date | None,
    settings: Settings,
) -> tuple[date, date]:
    max_days = settings.analytics_max_days
    end_day = end or date.today()
    if start is None:
        window = min(settings.analytics_default_days, max_days) - 1
        start_day = end_day - timedelta(days=min(window, (end_day - date.min).days))
    else:
        start_day = start
    if start_day > end_day:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'from' must not be after 'to'",
        )
    if (end_day - start_day).days + 1 > max_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"range must not exceed {max_days} days",
        )
    return start_day, end_day


# -- accounts ----------------------------------------------------------------
@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    storage: StorageService = Depends(get_storage_service),
) -> RegisterResponse:
    result = validate_registration(
        payload.username,
        payload.email,
        payload.password,
        payload.confirm_password,
    )
    if not result.is_valid:
        AUTH_EVENTS.labels(event="register", result="invalid").inc()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.error)
    try:
        user = await storage.create_user(
            username=payload.username,
            email=payload.email,
            password_hash=hash_password(payload.password),
        )
    except DuplicateUserError as exc:
        AUTH_EVENTS.labels(event="register", result="duplicate").inc()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    AUTH_EVENTS.labels(event="register", result="ok").inc()
    logger.info("user registered", extra={"user": hash_identifier(user.id)})
    return RegisterResponse(id=user.id, username=user.username)


@router.post("/auth/login", response_model=AuthSessionInfo)
async def login(
    payload: LoginRequest,
    response: Response,
    storage: StorageService = Depends(get_storage_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthSessionInfo:
    limiter_key = f"login:{payload.username.strip().lower()}"
    if not limiter.allow(limiter_key, limit=settings.login_rate_limit, window_seconds=60):
        AUTH_EVENTS.labels(event="login", result="rate_limited").inc()
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate limited")

    user = await storage.get_user_by_username(payload.username)
    if user is None or not verify_password(user.password_hash, payload.password):
        AUTH_EVENTS.labels(event="login", result="denied").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid username or password",
        )

    limiter.reset(limiter_key)
    if needs_rehash(user.password_hash):
        await storage.update_password_hash(user.id, hash_password(payload.password))

    session_token = await storage.issue_session(user.id, ttl_days=settings.session_ttl_days)
    response.set_cookie(
        SESSION_COOKIE,
        session_token.token,
        httponly=True,
        secure=settings.cookie_secure,
        max_age=settings.session_ttl_days * 24 * 3600,
        samesite="lax",
    )
    AUTH_EVENTS.labels(event="login", result="ok").inc()
    logger.info("user logged in", extra={"user": hash_identifier(user.id)})
    return AuthSessionInfo(
        token=session_token.token,
        expires_at=session_token.expires_at,
        username=user.username,
    )


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    await storage.revoke_session(request.state.session_token)
    AUTH_EVENTS.labels(event="logout", result="ok").inc()
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/me", response_model=UserProfile)
async def read_me(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> UserProfile:
    user = await storage.get_user_by_id(user_id)
    if user is None:  # pragma: no cover - session resolved a deleted user
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    profile = UserProfile.model_validate(user, from_attributes=True)
    profile.theme = await storage.get_theme(user_id)
    USER_API_COUNTER.labels(endpoint="me_get").inc()
    return profile


@router.get("/me/theme", response_model=ThemeResponse)
async def read_theme(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> ThemeResponse:
    theme = await storage.get_theme(user_id)
    return ThemeResponse(theme=theme, css_class=css_class(theme))


@router.put("/me/theme", response_model=ThemeResponse)
async def update_theme(
    payload: ThemeUpdate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> ThemeResponse:
    theme = await storage.set_theme(user_id, payload.theme)
    USER_API_COUNTER.labels(endpoint="theme_put").inc()
    return ThemeResponse(theme=theme, css_class=css_class(theme))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    await storage.delete_user(user_id)
    USER_API_COUNTER.labels(endpoint="me_delete").inc()
    logger.info("user deleted", extra={"user": hash_identifier(user_id)})
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response


# -- journal -----------------------------------------------------------------
@router.put("/journal", response_model=JournalEntryModel)
async def upsert_journal_entry(
    payload: JournalUpsert,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JournalEntryModel:
    if not limiter.allow(f"journal:{user_id}", limit=20, window_seconds=60):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate limited")
    if not has_real_text(payload.content):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="entry content is empty",
        )
    try:
        entry = await storage.upsert_entry(
            user_id=user_id,
            entry_id=payload.id,
            entry_date=payload.entry_date,
            title=payload.title,
            content=payload.content,
            mood=payload.mood,
            secondary_moods=payload.secondary_moods,
            tags=payload.tags,
        )
    except EntryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DuplicateEntryDateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    USER_API_COUNTER.labels(endpoint="journal_put").inc()
    return JournalEntryModel.from_entry(entry)


@router.get("/journal", response_model=JournalListResponse)
async def list_journal_entries(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
    limit: int = Query(default=100, ge=1, le=366),
) -> JournalListResponse:
    entries = await storage.list_entries(user_id=user_id, start=start, end=end, limit=limit)
    items = [JournalEntryModel.from_entry(entry) for entry in entries]
    USER_API_COUNTER.labels(endpoint="journal_get").inc()
    return JournalListResponse(items=items)


@router.get("/journal/day/{day}", response_model=JournalEntryModel)
async def read_journal_entry_for_day(
    day: date,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> JournalEntryModel:
    entry = await storage.get_entry_by_date(user_id, day)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no entry for this day")
    return JournalEntryModel.from_entry(entry)


@router.get("/journal/{entry_id}", response_model=JournalEntryModel)
async def read_journal_entry(
    entry_id: int,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> JournalEntryModel:
    entry = await storage.get_entry_by_id(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="entry not found")
    return JournalEntryModel.from_entry(entry)


@router.delete("/journal/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_journal_entry(
    entry_id: int,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    await storage.delete_entry(user_id, entry_id)
    USER_API_COUNTER.labels(endpoint="journal_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- analytics and export ----------------------------------------------------
@router.get("/analytics", response_model=AnalyticsResponse)
async def read_analytics(
    engine: InsightsEngine = Depends(get_insights_engine),
    settings: Settings = Depends(get_settings_from_app),
    user_id: int = Depends(resolve_authenticated_user),
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
) -> AnalyticsResponse:
    start_day, end_day = _resolve_range(start, end, settings)
    result = await engine.get_insights(user_id, start_day, end_day)
    USER_API_COUNTER.labels(endpoint="analytics_get").inc()
    return AnalyticsResponse.from_result(result)


@router.get("/export")
async def export_entries(
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_settings_from_app),
    user_id: int = Depends(resolve_authenticated_user),
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
) -> StreamingResponse:
    start_day, end_day = _resolve_range(start, end, settings)
    content = await storage.export_entries_csv(user_id, start_day, end_day)
    filename = f"journal-export_{start_day:%Y%m%d}_{end_day:%Y%m%d}.csv"
    USER_API_COUNTER.labels(endpoint="export_get").inc()
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
