from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from bbb_viewer.api.v1.deps import get_moodle_client
from bbb_viewer.core.config import settings
from bbb_viewer.modules.moodle.client import MoodleClient
from bbb_viewer.services.bbb_manager import build_manager

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def parse_course_id(value: str | None) -> int | None:
    """Return a positive course id, or None for a missing or invalid selector."""
    try:
        course_id = int((value or "").strip())
    except ValueError:
        return None
    return course_id if course_id > 0 else None


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    course_id: str | None = Query(default=None),
    client: MoodleClient = Depends(get_moodle_client),
):
    manager = build_manager(client, course_id=parse_course_id(course_id))
    manager.initialize()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "manager": manager,
            "app_name": settings.PROJECT_NAME,
            "app_version": settings.APP_VERSION,
        },
    )
