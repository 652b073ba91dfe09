from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from bbb_viewer.core.config import settings
from bbb_viewer.modules.moodle.errors import (
    ApiFault,
    DecodeFault,
    MoodleFault,
    NotFoundFault,
    TransportFault,
)

REST_ENDPOINT = "/webservice/rest/server.php"
BBB_MODNAME = "bigbluebuttonbn"


class MoodleClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        rest_format: str = "json",
        timeout: float = 30.0,
        max_redirects: int = 10,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.rest_format = rest_format
        self._http = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=max_redirects,
            transport=transport,
        )
        self._logger = logging.getLogger("moodle")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MoodleClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def validate_connection(self) -> bool:
        try:
            self.get_site_info()
            return True
        except MoodleFault as exc:
            self._logger.warning("[Moodle] Connection check failed: %s", exc)
            return False

    def get_site_info(self) -> dict:
        return self.call("core_webservice_get_site_info")

    def get_courses(self) -> list[dict]:
        return self.call("core_course_get_courses")

    def get_course_by_id(self, course_id: int) -> dict:
        result = self.call("core_course_get_courses_by_field", {"field": "id", "value": course_id})
        courses = result.get("courses") or []
        if not courses:
            raise NotFoundFault(f"Course {course_id} not found.", function="core_course_get_courses_by_field")
        course = dict(courses[0])
        course["course_url"] = self.course_url(course_id)
        return course

    def get_bbb_activities(self, course_ids: list[int]) -> list[dict]:
        if not course_ids:
            return []
        result = self.call(
            "mod_bigbluebuttonbn_get_bigbluebuttonbns_by_courses",
            {"courseids": list(course_ids)},
        )
        return result.get("bigbluebuttonbns") or []

    def get_course_contents(self, course_id: int) -> list[dict]:
        return self.call("core_course_get_contents", {"courseid": course_id})

    def get_group_name(self, group_id: int) -> Optional[str]:
        groups = self.call("core_group_get_groups", {"groupids": [group_id]})
        if not groups:
            return None
        return groups[0].get("name") or None

    def course_url(self, course_id: int) -> str:
        return f"{self.base_url}/course/view.php?id={course_id}"

    def activity_url(self, course_module_id: int) -> str:
        return f"{self.base_url}/mod/{BBB_MODNAME}/view.php?id={course_module_id}"

    def call(self, function: str, params: Optional[dict[str, Any]] = None) -> Any:
        query = _flatten_params(params or {})
        query += [
            ("wstoken", self.token),
            ("wsfunction", function),
            ("moodlewsrestformat", self.rest_format),
        ]
        self._logger.info("[Moodle] Request %s params=%s", function, _redact(query))

        try:
            response = self._http.get(f"{self.base_url}{REST_ENDPOINT}", params=query)
        except httpx.HTTPError as exc:
            self._logger.warning("[Moodle] Transport error on %s: %s", function, exc)
            raise TransportFault(f"API call failed: {exc}", function=function) from exc

        if response.status_code != 200:
            raise TransportFault(
                f"API call failed: HTTP code {response.status_code}",
                status_code=response.status_code,
                function=function,
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise DecodeFault(f"Could not decode JSON response: {exc}", function=function) from exc

        self._logger.debug("[Moodle] Response for %s: %s", function, json.dumps(result, ensure_ascii=False))

        if isinstance(result, dict) and "exception" in result:
            raise ApiFault(
                result.get("message") or "Unknown Moodle API error",
                errorcode=result.get("errorcode"),
                function=function,
            )
        return result


def _flatten_params(params: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Encode nested arguments the way Moodle's REST server expects them.

    ``{"courseids": [3, 5]}`` becomes ``courseids[0]=3&courseids[1]=5``.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(_flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(_flatten_params(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            pairs.append((name, "1" if value else "0"))
        else:
            pairs.append((name, str(value)))
    return pairs


def _redact(pairs: list[tuple[str, str]]) -> dict[str, str]:
    return {name: ("***" if name == "wstoken" else value) for name, value in pairs}


def build_client(base_url: str, token: str) -> MoodleClient:
    return MoodleClient(
        base_url=base_url,
        token=token,
        rest_format=settings.MOODLE_REST_FORMAT,
        timeout=settings.MOODLE_TIMEOUT_SECONDS,
        max_redirects=settings.MOODLE_MAX_REDIRECTS,
    )


def build_client_from_settings() -> MoodleClient:
    return build_client(
        base_url=settings.MOODLE_BASE_URL,
        token=settings.MOODLE_TOKEN,
    )
