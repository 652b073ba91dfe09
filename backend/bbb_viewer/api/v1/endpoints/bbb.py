from fastapi import APIRouter, Depends, HTTPException, Path, status

from bbb_viewer.api.v1.deps import get_moodle_client
from bbb_viewer.modules.moodle.client import MoodleClient
from bbb_viewer.schemas.bbb import CourseDetailRead, MoodleCourseRead
from bbb_viewer.services.bbb_manager import BBBManager, build_manager

router = APIRouter()


def _raise_for_error(manager: BBBManager) -> None:
    if manager.error is None:
        return
    if manager.fault is not None:
        raise manager.fault
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=manager.error)


@router.get("/courses", response_model=list[MoodleCourseRead])
def list_courses(client: MoodleClient = Depends(get_moodle_client)):
    manager = build_manager(client)
    manager.initialize()
    _raise_for_error(manager)
    return manager.courses


@router.get("/courses/{course_id}", response_model=CourseDetailRead)
def get_course(course_id: int = Path(ge=1), client: MoodleClient = Depends(get_moodle_client)):
    manager = build_manager(client, course_id=course_id)
    manager.initialize()
    _raise_for_error(manager)
    return manager.detail
