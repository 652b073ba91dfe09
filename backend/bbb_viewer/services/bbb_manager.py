from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from bbb_viewer.core.config import settings
from bbb_viewer.modules.moodle.availability import (
    RestrictionFormatter,
    has_restrictions,
    parse_availability,
)
from bbb_viewer.modules.moodle.client import MoodleClient
from bbb_viewer.modules.moodle.errors import MoodleFault
from bbb_viewer.modules.moodle.models import (
    BBBActivity,
    CourseDetail,
    CourseSection,
    FormattedRestriction,
    ModuleInfo,
    MoodleCourse,
)

CONNECTION_ERROR = "Could not connect to Moodle. Check the credentials."
MALFORMED_RESPONSE_ERROR = "Moodle returned data in an unexpected format."


class BBBManager:
    """Builds the display data for one request.

    After ``initialize`` the manager is either in error state (``error`` set,
    no courses or detail) or holds fully loaded data.
    """

    def __init__(
        self,
        client: MoodleClient,
        course_id: Optional[int] = None,
        timezone: str = "UTC",
        date_format: str = "%d/%m/%Y %H:%M",
        show_unknown_restrictions: bool = True,
    ):
        self.course_id = course_id or None
        self.error: Optional[str] = None
        self.fault: Optional[MoodleFault] = None
        self.courses: Optional[list[MoodleCourse]] = None
        self.detail: Optional[CourseDetail] = None
        self._client = client
        self._formatter = RestrictionFormatter(
            client.get_group_name,
            timezone=timezone,
            date_format=date_format,
            show_unknown=show_unknown_restrictions,
        )
        self._logger = logging.getLogger("bbb")

    def initialize(self) -> None:
        if not self._client.validate_connection():
            self._fail(CONNECTION_ERROR)
            return
        if self.course_id:
            self.load_course_detail(self.course_id)
        else:
            self.load_course_list()

    def load_course_list(self) -> Optional[list[MoodleCourse]]:
        try:
            raw_courses = self._client.get_courses()
            activities = self._client.get_bbb_activities([course["id"] for course in raw_courses])
            counts = Counter(activity.get("course") for activity in activities if activity.get("course"))
            courses = [
                self._build_course(course, counts[course["id"]])
                for course in raw_courses
                if counts.get(course["id"])
            ]
        except MoodleFault as exc:
            self._fail(str(exc), exc)
            return None
        except (KeyError, TypeError, ValueError) as exc:
            self._fail_malformed(exc)
            return None

        self._logger.info("[BBB] Courses with BBB activities: %s of %s", len(courses), len(raw_courses))
        self.courses = courses
        return courses

    def load_course_detail(self, course_id: int) -> Optional[CourseDetail]:
        try:
            course = self._client.get_course_by_id(course_id)
            contents = self._client.get_course_contents(course_id)
            activities = self._client.get_bbb_activities([course_id])
            sections = self._build_sections(contents, activities)
            course_info = self._build_course(course, sum(len(section.activities) for section in sections))
        except MoodleFault as exc:
            self._fail(str(exc), exc)
            return None
        except (KeyError, TypeError, ValueError) as exc:
            self._fail_malformed(exc)
            return None

        self._logger.info("[BBB] Course %s: %s sections with BBB activities", course_id, len(sections))
        self.detail = CourseDetail(course=course_info, sections=sections)
        return self.detail

    def has_restrictions(self, descriptor: Optional[dict]) -> bool:
        return has_restrictions(descriptor)

    def format_restrictions(self, descriptor: Optional[dict]) -> list[FormattedRestriction]:
        return self._formatter.format_restrictions(descriptor)

    def _fail(self, message: str, fault: Optional[MoodleFault] = None) -> None:
        self._logger.error("[BBB] %s", message)
        self.error = message
        self.fault = fault
        self.courses = None
        self.detail = None

    def _fail_malformed(self, exc: Exception) -> None:
        self._logger.warning("[BBB] Malformed Moodle response: %r", exc)
        self._fail(MALFORMED_RESPONSE_ERROR)

    def _build_course(self, raw: dict, bbb_count: int) -> MoodleCourse:
        return MoodleCourse(
            id=int(raw["id"]),
            fullname=raw.get("fullname") or "",
            shortname=raw.get("shortname") or "",
            visible=bool(raw.get("visible", 1)),
            url=raw.get("course_url") or self._client.course_url(raw["id"]),
            bbb_count=bbb_count,
        )

    def _build_sections(self, contents: list[dict], activities: list[dict]) -> list[CourseSection]:
        by_course_module = {
            activity["coursemodule"]: activity for activity in activities if activity.get("coursemodule")
        }
        sections: list[CourseSection] = []
        for section in contents:
            section_activities = [
                self._build_activity(module, by_course_module[module["id"]])
                for module in section.get("modules") or []
                if module.get("id") in by_course_module
            ]
            if not section_activities:
                continue
            availability = parse_availability(section.get("availability"))
            sections.append(
                CourseSection(
                    id=section["id"],
                    name=section.get("name") or f"Section {section.get('section')}",
                    number=section.get("section", 0),
                    visible=bool(section.get("visible", 1)),
                    availability=availability,
                    activities=section_activities,
                    restrictions=self.format_restrictions(availability),
                )
            )
        return sections

    def _build_activity(self, module: dict, bbb: dict) -> BBBActivity:
        availability = parse_availability(module.get("availability"))
        return BBBActivity(
            id=bbb["id"],
            course_module_id=module["id"],
            name=bbb.get("name") or module.get("name") or "",
            intro=bbb.get("intro") or "",
            visible=bool(module.get("visible", 1)),
            url=self._client.activity_url(module["id"]),
            availability=availability,
            module=ModuleInfo(
                id=module["id"],
                name=module.get("name") or "",
                modname=module.get("modname") or "",
                visible=bool(module.get("visible", 1)),
                added=module.get("added"),
                description=module.get("description"),
            ),
            restrictions=self.format_restrictions(availability),
        )


def build_manager(client: MoodleClient, course_id: Optional[int] = None) -> BBBManager:
    return BBBManager(
        client,
        course_id=course_id,
        timezone=settings.APP_TIMEZONE,
        date_format=settings.DATE_FORMAT,
        show_unknown_restrictions=settings.SHOW_UNKNOWN_RESTRICTIONS,
    )
