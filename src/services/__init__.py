from src.services import (
    care_item_service,
    care_task_service,
    category_service,
    client_profile_service,
    coverage,
    execution_generator,
    execution_lifecycle,
)


__all__ = [
    "care_item_service",
    "care_task_service",
    "category_service",
    "client_profile_service",
    "coverage",
    "execution_generator",
    "execution_lifecycle",
]
