from weekdigest.models.course_class import CourseClass
from weekdigest.models.document import SourceDocument
from weekdigest.models.week_schedule import WeekScheduleRecord
from weekdigest.models.week_recommendation import WeekRecommendationRecord

__all__ = [
    "CourseClass",
    "SourceDocument",
    "WeekScheduleRecord",
    "WeekRecommendationRecord",
]
