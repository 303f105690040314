# routers/__init__.py
from . import service_requests, recommendations, jobs, maintenance_plans, notifications

ALL_ROUTERS = [
     service_requests.router,
     recommendations.router,
     jobs.router,
     maintenance_plans.router,
     notifications.router,
]
