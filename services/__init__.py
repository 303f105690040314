# services/__init__.py
from .service_request_service import ServiceRequestService
from .access_policy import AccessPolicy, Decision
from .scheduler import MaintenancePlanScheduler
from .maintenance_plan_service import (
     calculate_next_due_date,
     hash_string_to_int,
     process_maintenance_plans,
)
from .archiving_service import run_archiving

__all__ = [
     "ServiceRequestService",
     "AccessPolicy",
     "Decision",
     "MaintenancePlanScheduler",
     "calculate_next_due_date",
     "hash_string_to_int",
     "process_maintenance_plans",
     "run_archiving",
]
