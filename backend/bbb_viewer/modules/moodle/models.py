import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class RestrictionType(str, enum.Enum):
    date = "date"
    group = "group"
    profile = "profile"
    completion = "completion"
    grade = "grade"
    unknown = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "RestrictionType":
        try:
            return cls(value)
        except ValueError:
            return cls.unknown


@dataclass(frozen=True)
class FormattedRestriction:
    type: RestrictionType
    icon: str
    css_class: str
    text: str


@dataclass(frozen=True)
class MoodleCourse:
    id: int
    fullname: str
    shortname: str
    visible: bool
    url: str
    bbb_count: int = 0


@dataclass(frozen=True)
class ModuleInfo:
    id: int
    name: str
    modname: str
    visible: bool
    added: Optional[int]
    description: Optional[str]


@dataclass(frozen=True)
class BBBActivity:
    id: int
    course_module_id: int
    name: str
    intro: str
    visible: bool
    url: str
    availability: Optional[dict]
    module: ModuleInfo
    restrictions: list[FormattedRestriction] = field(default_factory=list)


@dataclass(frozen=True)
class CourseSection:
    id: int
    name: str
    number: int
    visible: bool
    availability: Optional[dict]
    activities: list[BBBActivity]
    restrictions: list[FormattedRestriction] = field(default_factory=list)


@dataclass(frozen=True)
class CourseDetail:
    course: MoodleCourse
    sections: list[CourseSection]
