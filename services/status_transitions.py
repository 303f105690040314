# services/status_transitions.py
"""
Allowed status transitions for service requests, jobs and recommendations.

Each table maps a status to the statuses it may move to. A status with an
empty set is terminal; a status missing from the table (ARCHIVED) has no
outgoing transitions either.
"""
from typing import Dict, FrozenSet, Iterable, List, Optional

from models.enums import ServiceRequestStatus as SR, JobStatus as JS, RecommendationStatus as RS


SERVICE_REQUEST_TRANSITIONS: Dict[SR, FrozenSet[SR]] = {
     SR.SUBMITTED: frozenset({SR.UNDER_REVIEW, SR.REJECTED}),
     SR.UNDER_REVIEW: frozenset({SR.APPROVED, SR.REJECTED, SR.PENDING_OWNER_APPROVAL}),
     SR.PENDING_MANAGER_REVIEW: frozenset({SR.PENDING_OWNER_APPROVAL, SR.REJECTED}),
     SR.PENDING_OWNER_APPROVAL: frozenset({SR.APPROVED_BY_OWNER, SR.REJECTED_BY_OWNER}),
     SR.APPROVED: frozenset({SR.CONVERTED_TO_JOB, SR.REJECTED}),
     SR.APPROVED_BY_OWNER: frozenset({SR.CONVERTED_TO_JOB, SR.REJECTED}),
     SR.REJECTED: frozenset(),
     SR.REJECTED_BY_OWNER: frozenset({SR.PENDING_MANAGER_REVIEW}),
     SR.CONVERTED_TO_JOB: frozenset({SR.COMPLETED}),
     SR.COMPLETED: frozenset(),
}

JOB_TRANSITIONS: Dict[JS, FrozenSet[JS]] = {
     JS.OPEN: frozenset({JS.ASSIGNED, JS.CANCELLED}),
     JS.ASSIGNED: frozenset({JS.IN_PROGRESS, JS.CANCELLED}),
     JS.IN_PROGRESS: frozenset({JS.COMPLETED, JS.CANCELLED}),
     JS.COMPLETED: frozenset(),
     JS.CANCELLED: frozenset(),
}

# REJECTED -> SUBMITTED is the re-open performed by a manager response.
RECOMMENDATION_TRANSITIONS: Dict[RS, FrozenSet[RS]] = {
     RS.DRAFT: frozenset({RS.SUBMITTED}),
     RS.SUBMITTED: frozenset({RS.UNDER_REVIEW, RS.APPROVED, RS.REJECTED}),
     RS.UNDER_REVIEW: frozenset({RS.APPROVED, RS.REJECTED}),
     RS.APPROVED: frozenset({RS.IMPLEMENTED}),
     RS.REJECTED: frozenset({RS.SUBMITTED}),
     RS.IMPLEMENTED: frozenset(),
}


def _is_valid(table: dict, current, new) -> bool:
     return new in table.get(current, frozenset())


def is_valid_service_request_transition(current: SR, new: SR) -> bool:
     return _is_valid(SERVICE_REQUEST_TRANSITIONS, current, new)


def is_valid_job_transition(current: JS, new: JS) -> bool:
     return _is_valid(JOB_TRANSITIONS, current, new)


def is_valid_recommendation_transition(current: RS, new: RS) -> bool:
     return _is_valid(RECOMMENDATION_TRANSITIONS, current, new)


def _sorted_values(statuses: Iterable) -> List[str]:
     return sorted(s.value for s in statuses)


def get_allowed_service_request_transitions(current: SR) -> List[str]:
     return _sorted_values(SERVICE_REQUEST_TRANSITIONS.get(current, ()))


def get_allowed_job_transitions(current: JS) -> List[str]:
     return _sorted_values(JOB_TRANSITIONS.get(current, ()))


def get_allowed_recommendation_transitions(current: RS) -> List[str]:
     return _sorted_values(RECOMMENDATION_TRANSITIONS.get(current, ()))


def transition_error_message(current, new, allowed: Optional[List[str]] = None) -> str:
     """Human readable message for a rejected status change."""
     message = f"Invalid status transition from {current.value} to {new.value}."
     if allowed:
          message += f" Allowed transitions: {', '.join(allowed)}"
     else:
          message += f" {current.value} is a final status."
     return message
