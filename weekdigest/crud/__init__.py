from weekdigest.crud.course_class import (
    create_class,
    get_owned_class,
    set_current_week,
    flag_schedule_document,
    list_classes_with_current_week
)
from weekdigest.crud.document import (
    create_document,
    get_document,
    update_document,
    get_processed_documents,
    resolve_class_texts
)

__all__ = [
    "create_class",
    "get_owned_class",
    "set_current_week",
    "flag_schedule_document",
    "list_classes_with_current_week",
    "create_document",
    "get_document",
    "update_document",
    "get_processed_documents",
    "resolve_class_texts",
]
