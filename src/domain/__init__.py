"""Domain models and DTOs."""

from src.domain.care_item import CareItem
from src.domain.care_task import CareTask, TaskType
from src.domain.category import Category
from src.domain.client_profile import ClientProfile, Sex, Vitals
from src.domain.task_execution import EXECUTION_TRANSITIONS, ExecutionStatus, TaskExecution, can_transition


__all__ = [
    "EXECUTION_TRANSITIONS",
    "CareItem",
    "CareTask",
    "Category",
    "ClientProfile",
    "ExecutionStatus",
    "Sex",
    "TaskExecution",
    "TaskType",
    "Vitals",
    "can_transition",
]
