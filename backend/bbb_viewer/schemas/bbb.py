from pydantic import BaseModel, ConfigDict

from bbb_viewer.modules.moodle.models import RestrictionType


class FormattedRestrictionRead(BaseModel):
    type: RestrictionType
    icon: str
    css_class: str
    text: str

    model_config = ConfigDict(from_attributes=True)


class MoodleCourseRead(BaseModel):
    id: int
    fullname: str
    shortname: str
    visible: bool
    url: str
    bbb_count: int

    model_config = ConfigDict(from_attributes=True)


class ModuleInfoRead(BaseModel):
    id: int
    name: str
    modname: str
    visible: bool
    added: int | None
    description: str | None

    model_config = ConfigDict(from_attributes=True)


class BBBActivityRead(BaseModel):
    id: int
    course_module_id: int
    name: str
    intro: str
    visible: bool
    url: str
    module: ModuleInfoRead
    restrictions: list[FormattedRestrictionRead]

    model_config = ConfigDict(from_attributes=True)


class CourseSectionRead(BaseModel):
    id: int
    name: str
    number: int
    visible: bool
    activities: list[BBBActivityRead]
    restrictions: list[FormattedRestrictionRead]

    model_config = ConfigDict(from_attributes=True)


class CourseDetailRead(BaseModel):
    course: MoodleCourseRead
    sections: list[CourseSectionRead]

    model_config = ConfigDict(from_attributes=True)
