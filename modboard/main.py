import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from . import config
from .auth import get_current_user, is_moderator, require_moderator, verify_password
from .db import SessionLocal, get_session, init_db
from .models import User
from .services.dashboard import ContentFilter, SortMode, get_moderator_content
from .services.repository import ContentRepository, SqlContentRepository


BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

logger = logging.getLogger(__name__)

SCORE_FILTERS = [
    ("highScore", "Highest Score"),
    ("lowScore", "Lowest Score"),
    ("recent", "Most Recent"),
    ("old", "Oldest"),
]


def get_repository() -> ContentRepository:
    return SqlContentRepository(SessionLocal)


def _page_number(raw) -> int:
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        return 1


def create_app() -> FastAPI:
    config.configure_logging()
    app = FastAPI(title="modboard", version="0.1.0")

    app.add_middleware(SessionMiddleware, secret_key=config.secret_key())

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @app.on_event("startup")
    async def _startup() -> None:
        init_db()
        logger.info("database ready")

    @app.get("/")
    async def home(user=Depends(get_current_user)):
        target = "/moderator/dashboard" if is_moderator(user) else "/login"
        return RedirectResponse(url=target, status_code=302)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/login", response_class=HTMLResponse)
    async def login_get(request: Request):
        return templates.TemplateResponse(request, "login.html", {"request": request})

    @app.post("/login")
    async def login_post(
        request: Request,
        username: str = Form(...),
        password: str = Form(...),
        db: Session = Depends(get_session),
    ):
        user = db.query(User).filter(User.username == username).first()
        if not user or not verify_password(password, user.password_hash):
            logger.info("failed login for %s", username)
            return templates.TemplateResponse(
                request,
                "login.html",
                {"request": request, "error": "Invalid username or password"},
                status_code=400,
            )
        request.session["user_id"] = int(user.id)
        return RedirectResponse(url="/moderator/dashboard", status_code=302)

    @app.post("/logout")
    async def logout(request: Request):
        request.session.clear()
        return RedirectResponse(url="/", status_code=302)

    @app.get("/moderator/dashboard", response_class=HTMLResponse)
    async def moderator_dashboard(
        request: Request,
        user=Depends(get_current_user),
        repository: ContentRepository = Depends(get_repository),
    ):
        if not is_moderator(user):
            return RedirectResponse(url="/", status_code=302)
        page = _page_number(request.query_params.get("page"))
        content_type = ContentFilter.parse(request.query_params.get("type", "all"))
        sort_by = SortMode.parse(request.query_params.get("filter", "highScore"))
        result = await get_moderator_content(
            repository,
            page=page,
            page_size=config.dashboard_page_size(),
            content_type=content_type.value,
            sort_by=sort_by.value,
        )
        return templates.TemplateResponse(
            request,
            "moderator_dashboard.html",
            {
                "request": request,
                "user": user,
                "result": result,
                "page": page,
                "type": content_type.value,
                "sort_by": sort_by.value,
                "filters": SCORE_FILTERS,
            },
        )

    @app.get("/api/moderator/content")
    async def moderator_content_api(
        page: int = 1,
        type: str = "all",
        sortBy: str = "highScore",
        pageSize: int | None = None,
        user=Depends(require_moderator),
        repository: ContentRepository = Depends(get_repository),
    ):
        result = await get_moderator_content(
            repository,
            page=page,
            page_size=pageSize or config.dashboard_page_size(),
            content_type=type,
            sort_by=sortBy,
        )
        return JSONResponse(result.to_dict())

    return app


app = create_app()
