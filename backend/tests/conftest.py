"""Pytest fixtures: an in-memory Moodle REST server behind httpx.MockTransport."""

from typing import Any

import httpx
import pytest

from bbb_viewer.modules.moodle.client import MoodleClient

BASE_URL = "https://moodle.test"
TOKEN = "secret-token"


class FakeMoodle:
    """Answers web-service calls from a ``wsfunction -> payload`` mapping.

    A payload may be plain JSON data, an ``httpx.Response`` or a callable
    taking the request. Unknown functions answer with a Moodle exception.
    """

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {
            "core_webservice_get_site_info": {"sitename": "Test Moodle", "userid": 2},
        }
        self.calls: list[tuple[str, dict[str, str]]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params.multi_items())
        function = params.get("wsfunction", "")
        self.calls.append((function, params))
        payload = self.responses.get(function)
        if callable(payload):
            return payload(request)
        if isinstance(payload, httpx.Response):
            return payload
        if payload is None:
            return httpx.Response(
                200,
                json={
                    "exception": "invalid_parameter_exception",
                    "errorcode": "invalidparameter",
                    "message": f"Unknown function {function}",
                },
            )
        return httpx.Response(200, json=payload)

    @property
    def functions(self) -> list[str]:
        return [function for function, _ in self.calls]


@pytest.fixture
def fake_moodle() -> FakeMoodle:
    return FakeMoodle()


@pytest.fixture
def moodle_client(fake_moodle):
    client = MoodleClient(BASE_URL, TOKEN, transport=httpx.MockTransport(fake_moodle))
    yield client
    client.close()


def seed_course_list(fake: FakeMoodle) -> None:
    fake.responses["core_course_get_courses"] = [
        {"id": 2, "fullname": "Physics I", "shortname": "PHY1", "visible": 1},
        {"id": 3, "fullname": "History", "shortname": "HIS", "visible": 1},
        {"id": 4, "fullname": "Chemistry", "shortname": "CHEM", "visible": 0},
    ]
    fake.responses["mod_bigbluebuttonbn_get_bigbluebuttonbns_by_courses"] = {
        "bigbluebuttonbns": [
            {"id": 1, "course": 2, "coursemodule": 21, "name": "Physics lecture"},
            {"id": 2, "course": 4, "coursemodule": 41, "name": "Lab briefing"},
            {"id": 3, "course": 2, "coursemodule": 22, "name": "Physics Q&A"},
        ],
        "warnings": [],
    }


def seed_course_detail(fake: FakeMoodle) -> None:
    fake.responses["core_course_get_courses_by_field"] = {
        "courses": [{"id": 2, "fullname": "Physics I", "shortname": "PHY1", "visible": 1}],
        "warnings": [],
    }
    fake.responses["core_course_get_contents"] = [
        {
            "id": 100,
            "name": "General",
            "section": 0,
            "visible": 1,
            "modules": [{"id": 20, "name": "Announcements", "modname": "forum", "visible": 1}],
        },
        {
            "id": 101,
            "name": "",
            "section": 1,
            "visible": 1,
            "availability": '{"op":"&","c":[{"type":"group","id":7}],"showc":[true]}',
            "modules": [
                {
                    "id": 21,
                    "name": "Physics lecture",
                    "modname": "bigbluebuttonbn",
                    "visible": 1,
                    "added": 1700000000,
                    "description": "<p>Weekly lecture</p>",
                },
                {
                    "id": 22,
                    "name": "Physics Q&A",
                    "modname": "bigbluebuttonbn",
                    "visible": 0,
                    "availability": '{"op":"&","c":[{"type":"date","d":">=","t":1700000000}],"showc":[true]}',
                },
            ],
        },
        {
            "id": 102,
            "name": "Exams",
            "section": 2,
            "visible": 0,
            "availability": "{not json",
            "modules": [],
        },
    ]
    fake.responses["mod_bigbluebuttonbn_get_bigbluebuttonbns_by_courses"] = {
        "bigbluebuttonbns": [
            {"id": 1, "course": 2, "coursemodule": 21, "name": "Physics lecture", "intro": "<b>Join</b> every Monday"},
            {"id": 3, "course": 2, "coursemodule": 22, "name": "Physics Q&A"},
        ],
        "warnings": [],
    }
    fake.responses["core_group_get_groups"] = [{"id": 7, "courseid": 2, "name": "Group A"}]
