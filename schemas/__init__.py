# schemas/__init__.py
from .common import ErrorResponse
from .job import JobCreate, JobStatusUpdate, JobResponse, JobListResponse
from .service_request import (
     ServiceRequestCreate,
     ServiceRequestUpdate,
     ServiceRequestResponse,
     ServiceRequestDetail,
     ServiceRequestEnvelope,
     ServiceRequestListResponse,
     EstimateRequest,
     OwnerApproveRequest,
     RejectRequest,
     ConvertToJobRequest,
     ConvertToJobResponse,
)
from .recommendation import (
     RecommendationCreate,
     RecommendationReject,
     RecommendationRespond,
     RecommendationConvert,
     RecommendationResponse,
     RecommendationListResponse,
)
from .maintenance_plan import (
     MaintenancePlanCreate,
     MaintenancePlanUpdate,
     MaintenancePlanResponse,
     MaintenancePlanListResponse,
)
from .notification import NotificationResponse, NotificationListResponse
