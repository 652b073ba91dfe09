from typing import Iterator

from bbb_viewer.modules.moodle.client import MoodleClient, build_client_from_settings


def get_moodle_client() -> Iterator[MoodleClient]:
    client = build_client_from_settings()
    try:
        yield client
    finally:
        client.close()
