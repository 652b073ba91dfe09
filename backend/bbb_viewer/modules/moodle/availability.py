from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from markupsafe import Markup, escape

from bbb_viewer.modules.moodle.errors import MoodleFault
from bbb_viewer.modules.moodle.models import FormattedRestriction, RestrictionType

_logger = logging.getLogger("moodle")

DATE_PREFIXES = {
    ">=": "Available from: ",
    "<=": "Available until: ",
}
DEFAULT_DATE_PREFIX = "Available at: "


def parse_availability(raw: Any) -> Optional[dict]:
    """Decode the JSON availability tree Moodle attaches to sections and modules.

    Malformed input is logged and treated as "no restrictions".
    """
    if not raw:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as exc:
        _logger.warning("[Moodle] Could not parse availability %r: %s", raw, exc)
        return None
    if not isinstance(decoded, dict):
        return None
    return decoded


def has_restrictions(descriptor: Optional[dict]) -> bool:
    if not descriptor:
        return False
    conditions = descriptor.get("c") or []
    return any(isinstance(condition, dict) and condition.get("type") for condition in conditions)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _format_number(value: Any) -> Optional[str]:
    try:
        return f"{float(value):g}"
    except (TypeError, ValueError):
        return None


def _load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _logger.warning("[Moodle] Unknown timezone %s, falling back to UTC", name)
        return ZoneInfo("UTC")


class RestrictionFormatter:
    """Turns availability conditions into display entries.

    Group names are looked up through ``group_lookup`` once per group id for
    the lifetime of the formatter, which is one request.
    """

    def __init__(
        self,
        group_lookup: Callable[[int], Optional[str]],
        timezone: str = "UTC",
        date_format: str = "%d/%m/%Y %H:%M",
        show_unknown: bool = True,
    ):
        self._group_lookup = group_lookup
        self._tz = _load_timezone(timezone)
        self._date_format = date_format
        self._show_unknown = show_unknown
        self._group_cache: dict[int, Optional[str]] = {}
        self._handlers: dict[RestrictionType, Callable[[dict], Optional[FormattedRestriction]]] = {
            RestrictionType.date: self._format_date,
            RestrictionType.group: self._format_group,
            RestrictionType.profile: self._format_profile,
            RestrictionType.completion: self._format_completion,
            RestrictionType.grade: self._format_grade,
        }

    def format_restrictions(self, descriptor: Optional[dict]) -> list[FormattedRestriction]:
        if not has_restrictions(descriptor):
            return []
        restrictions: list[FormattedRestriction] = []
        for condition in descriptor.get("c") or []:
            if not isinstance(condition, dict):
                continue
            restriction = self.format_restriction(condition)
            if restriction is not None:
                restrictions.append(restriction)
        return restrictions

    def format_restriction(self, condition: dict) -> Optional[FormattedRestriction]:
        handler = self._handlers.get(RestrictionType.parse(condition.get("type")))
        restriction = handler(condition) if handler else None
        if restriction is not None:
            return restriction
        if not self._show_unknown:
            return None
        return self._format_unknown(condition)

    def format_timestamp(self, timestamp: int) -> Optional[str]:
        try:
            return datetime.fromtimestamp(timestamp, tz=self._tz).strftime(self._date_format)
        except (OverflowError, OSError, ValueError):
            _logger.warning("[Moodle] Timestamp out of range: %s", timestamp)
            return None

    def _format_date(self, condition: dict) -> Optional[FormattedRestriction]:
        timestamp = _as_int(condition.get("t"))
        if timestamp is None or timestamp <= 0:
            return None
        formatted = self.format_timestamp(timestamp)
        if formatted is None:
            return None
        prefix = DATE_PREFIXES.get(condition.get("d") or ">=", DEFAULT_DATE_PREFIX)
        return FormattedRestriction(
            type=RestrictionType.date,
            icon="bi-calendar-event",
            css_class="text-primary",
            text=prefix + formatted,
        )

    def _format_group(self, condition: dict) -> Optional[FormattedRestriction]:
        group_id = _as_int(condition.get("id"))
        if group_id is None:
            return None
        name = self._group_name(group_id)
        return FormattedRestriction(
            type=RestrictionType.group,
            icon="bi-people-fill",
            css_class="text-success",
            text=escape(name) if name else f"Group #{group_id}",
        )

    def _format_profile(self, condition: dict) -> Optional[FormattedRestriction]:
        field = condition.get("sf") or condition.get("cf")
        value = condition.get("v")
        if not field or value is None:
            return None
        return FormattedRestriction(
            type=RestrictionType.profile,
            icon="bi-person-badge",
            css_class="text-info",
            text=Markup("Profile field '{}': {}").format(field, value),
        )

    def _format_completion(self, condition: dict) -> Optional[FormattedRestriction]:
        activity_id = _as_int(condition.get("cm"))
        if activity_id is None:
            return None
        expected = _as_int(condition.get("e"))
        status = "completed" if expected is None or expected == 1 else "not completed"
        return FormattedRestriction(
            type=RestrictionType.completion,
            icon="bi-check-circle",
            css_class="text-warning",
            text=f"Requires activity '{activity_id}' {status}",
        )

    def _format_grade(self, condition: dict) -> Optional[FormattedRestriction]:
        minimum = _format_number(condition.get("min"))
        if minimum is None:
            return None
        return FormattedRestriction(
            type=RestrictionType.grade,
            icon="bi-award",
            css_class="text-danger",
            text=f"Minimum grade: {minimum}%",
        )

    def _format_unknown(self, condition: dict) -> FormattedRestriction:
        return FormattedRestriction(
            type=RestrictionType.unknown,
            icon="bi-question-circle",
            css_class="text-secondary",
            text=escape("Unrecognized restriction: " + json.dumps(condition, ensure_ascii=False)),
        )

    def _group_name(self, group_id: int) -> Optional[str]:
        if group_id in self._group_cache:
            return self._group_cache[group_id]
        try:
            name = self._group_lookup(group_id)
        except MoodleFault as exc:
            _logger.warning("[Moodle] Could not resolve group %s: %s", group_id, exc)
            return None
        self._group_cache[group_id] = name
        return name
