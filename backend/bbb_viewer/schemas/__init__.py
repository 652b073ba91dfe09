from bbb_viewer.schemas.bbb import (
    BBBActivityRead,
    CourseDetailRead,
    CourseSectionRead,
    FormattedRestrictionRead,
    ModuleInfoRead,
    MoodleCourseRead,
)

__all__ = [
    "BBBActivityRead",
    "CourseDetailRead",
    "CourseSectionRead",
    "FormattedRestrictionRead",
    "ModuleInfoRead",
    "MoodleCourseRead",
]
