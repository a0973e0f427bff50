# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import smtplib
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, List, Optional, Type, TypeVar

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from fiesta.auth import flow
from fiesta.config import AppConfig
from fiesta.core.schemas import (
    ArticleIn,
    ArticleOut,
    ArticlePatch,
    ContactMessage,
    Credentials,
    EventIn,
    EventOut,
    EventPatch,
    NewUser,
    PasswordChange,
    SettingsOut,
    SettingsPatch,
)
from fiesta.errors import (
    FiestaError,
    InfrastructureError,
    SetupAlreadyComplete,
    ValidationError,
    is_transient,
)
from fiesta.infra.bootstrap import open_storage, prepare_storage
from fiesta.infra.storage import Account, Storage
from fiesta.permissions import (
    cookie_settings,
    get_config,
    get_storage,
    load_user_from_request,
    require_admin,
    require_user,
)
from fiesta.services import content_service
from fiesta.services.contact_service import send_contact_message
from fiesta.services.settings_service import get_settings, update_settings
from fiesta.services.setup_service import check_setup_complete, run_setup
from fiesta.services.user_service import change_password, create_account

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CONTACT_OK = "Your message has been sent successfully. We'll get back to you soon!"
CONTACT_FAILED = "There was a problem sending your message. Please try again later."


def _format_errors(errors: List[dict]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f'{msg} at "{loc}"' if loc else msg)
    return "Validation error: " + "; ".join(parts)


def _parse(model: Type[M], body: Any) -> M:
    """Validate a raw JSON body, raising the application's ValidationError."""
    try:
        return model.model_validate(body if body is not None else {})
    except PydanticValidationError as e:
        raise ValidationError(_format_errors(e.errors())) from e


def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, FiestaError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})
    if is_transient(exc):
        logger.warning("Transient infrastructure failure: %s", exc)
        err = InfrastructureError()
        return JSONResponse(status_code=err.status_code, content={"message": err.message})
    logger.exception("Unhandled error", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ------------------ Routes ------------------

router = APIRouter(prefix="/api")


@router.get("/health")
def health(storage: Storage = Depends(get_storage)):
    storage.ping()
    return {"status": "ok"}


# ------------------ Setup ------------------


@router.get("/setup/check")
def setup_check(storage: Storage = Depends(get_storage)) -> bool:
    return check_setup_complete(storage)


@router.post("/setup", status_code=201)
def setup_post(body: Any = Body(None), storage: Storage = Depends(get_storage)):
    # A finished setup wins over any payload problem.
    if check_setup_complete(storage):
        raise SetupAlreadyComplete()
    payload = _parse(Credentials, body)
    account = run_setup(storage, username=payload.username, password=payload.password)
    return account.public()


# ------------------ Auth ------------------


@router.post("/login")
def login_post(
    payload: Credentials,
    request: Request,
    response: Response,
    storage: Storage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
):
    account, _, cookie = flow.login(
        storage,
        payload.username,
        payload.password,
        secret=config.secret_key,
        max_age=config.session_max_age,
    )
    # The previous session ends only once the new one exists.
    previous = request.cookies.get(config.cookie_name, "")
    if previous:
        flow.logout(storage, previous, secret=config.secret_key, max_age=config.session_max_age)
    response.set_cookie(config.cookie_name, cookie, max_age=config.session_max_age, **cookie_settings(config))
    return account.public()


@router.post("/logout")
def logout_post(
    request: Request,
    response: Response,
    storage: Storage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
):
    flow.logout(
        storage,
        request.cookies.get(config.cookie_name, ""),
        secret=config.secret_key,
        max_age=config.session_max_age,
    )
    response.delete_cookie(config.cookie_name, **cookie_settings(config))
    return {"message": "Logged out"}


@router.get("/user")
def user_get(user: Account = Depends(require_user)):
    return user.public()


@router.put("/user/password")
def user_password_put(
    payload: PasswordChange,
    user: Account = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    updated = change_password(
        storage,
        user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return updated.public()


@router.post("/users", status_code=201)
def users_post(
    payload: NewUser,
    admin: Account = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    account = create_account(storage, username=payload.username, password=payload.password, is_admin=payload.is_admin)
    return account.public()


# ------------------ Settings ------------------


@router.get("/settings", response_model=SettingsOut)
def settings_get(storage: Storage = Depends(get_storage)):
    return get_settings(storage)


@router.put("/settings", response_model=SettingsOut)
def settings_put(
    payload: SettingsPatch,
    admin: Account = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return update_settings(storage, payload.changes())


# ------------------ Events ------------------


@router.get("/events", response_model=List[EventOut])
def events_list(storage: Storage = Depends(get_storage)):
    return storage.list_events()


@router.get("/events/featured", response_model=List[EventOut])
def events_featured(storage: Storage = Depends(get_storage)):
    return storage.list_events(featured_only=True)


@router.get("/events/{event_id}", response_model=EventOut)
def event_get(event_id: int, storage: Storage = Depends(get_storage)):
    return content_service.get_event(storage, event_id)


@router.post("/events", response_model=EventOut, status_code=201)
def event_post(payload: EventIn, admin: Account = Depends(require_admin), storage: Storage = Depends(get_storage)):
    return storage.create_event(payload.model_dump())


@router.put("/events/{event_id}", response_model=EventOut)
def event_put(
    event_id: int,
    payload: EventPatch,
    admin: Account = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return content_service.update_event(storage, event_id, payload.changes())


@router.delete("/events/{event_id}", status_code=204)
def event_delete(event_id: int, admin: Account = Depends(require_admin), storage: Storage = Depends(get_storage)):
    content_service.delete_event(storage, event_id)
    return Response(status_code=204)


# ------------------ Wiki ------------------


@router.get("/wiki", response_model=List[ArticleOut])
def wiki_list(storage: Storage = Depends(get_storage)):
    return storage.list_articles()


@router.get("/wiki/featured", response_model=List[ArticleOut])
def wiki_featured(storage: Storage = Depends(get_storage)):
    return storage.list_articles(featured_only=True)


@router.get("/wiki/{article_id}", response_model=ArticleOut)
def wiki_get(article_id: int, storage: Storage = Depends(get_storage)):
    return content_service.get_article(storage, article_id)


@router.post("/wiki", response_model=ArticleOut, status_code=201)
def wiki_post(payload: ArticleIn, admin: Account = Depends(require_admin), storage: Storage = Depends(get_storage)):
    return storage.create_article(payload.model_dump())


@router.put("/wiki/{article_id}", response_model=ArticleOut)
def wiki_put(
    article_id: int,
    payload: ArticlePatch,
    admin: Account = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    return content_service.update_article(storage, article_id, payload.changes())


@router.delete("/wiki/{article_id}", status_code=204)
def wiki_delete(article_id: int, admin: Account = Depends(require_admin), storage: Storage = Depends(get_storage)):
    content_service.delete_article(storage, article_id)
    return Response(status_code=204)


# ------------------ Contact ------------------


@router.post("/contact")
def contact_post(
    body: Any = Body(None),
    storage: Storage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
):
    try:
        msg = ContactMessage.model_validate(body if body is not None else {})
    except PydanticValidationError as e:
        return JSONResponse(status_code=400, content={"success": False, "message": _format_errors(e.errors())})

    settings = get_settings(storage)
    to_address = settings.get("contact_mail") or settings.get("contact_email") or ""
    site_title = (settings.get("website_settings") or {}).get("title") or "Science Carnival"
    try:
        send_contact_message(msg, to_address=to_address, config=config, site_title=site_title)
    except (smtplib.SMTPException, OSError):
        logger.exception("Contact relay failed")
        return JSONResponse(status_code=500, content={"success": False, "message": CONTACT_FAILED})
    return {"success": True, "message": CONTACT_OK}


# ------------------ App factory ------------------


def create_app(config: Optional[AppConfig] = None, *, storage: Optional[Storage] = None) -> FastAPI:
    """Build the application. The store is opened by the lifespan, never at import."""
    config = config or AppConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if storage is not None:
            app.state.storage = await run_in_threadpool(prepare_storage, storage)
        else:
            app.state.storage = await run_in_threadpool(open_storage, config)
        try:
            yield
        finally:
            app.state.storage.close()

    app = FastAPI(title="Science Fiesta", lifespan=lifespan)
    app.state.config = config

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        try:
            request.state.user = await run_in_threadpool(load_user_from_request, request)
        except (SQLAlchemyError, FiestaError, OSError) as e:
            return _error_response(e)
        return await call_next(request)

    @app.exception_handler(FiestaError)
    async def _fiesta_error(request: Request, exc: FiestaError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _format_errors(list(exc.errors()))})

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        return _error_response(exc)

    app.include_router(router)

    static_dir = Path(config.static_dir).resolve() if config.static_dir else None
    if static_dir and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")

    return app
