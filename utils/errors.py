# utils/errors.py
"""
Domain error type and machine readable error codes.

Every 4xx produced by the workflow services is a `DomainError`; the handler
registered in `main.py` renders it as `{"success": false, "message", "code"}`.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class ErrorCodes:
     """Error codes shared with the frontend."""
     # Validation
     VAL_VALIDATION_ERROR = "VAL_VALIDATION_ERROR"
     VAL_MISSING_FIELD = "VAL_MISSING_FIELD"

     # Authentication
     AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"
     AUTH_NO_TOKEN = "AUTH_NO_TOKEN"
     AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"

     # Access control
     ACC_ACCESS_DENIED = "ACC_ACCESS_DENIED"
     ACC_ROLE_REQUIRED = "ACC_ROLE_REQUIRED"
     ACC_PROPERTY_ACCESS_DENIED = "ACC_PROPERTY_ACCESS_DENIED"

     # Resources
     RES_NOT_FOUND = "RES_NOT_FOUND"
     RES_PROPERTY_NOT_FOUND = "RES_PROPERTY_NOT_FOUND"
     RES_UNIT_NOT_FOUND = "RES_UNIT_NOT_FOUND"
     RES_USER_NOT_FOUND = "RES_USER_NOT_FOUND"
     RES_JOB_NOT_FOUND = "RES_JOB_NOT_FOUND"
     RES_SERVICE_REQUEST_NOT_FOUND = "RES_SERVICE_REQUEST_NOT_FOUND"
     RES_RECOMMENDATION_NOT_FOUND = "RES_RECOMMENDATION_NOT_FOUND"
     RES_PLAN_NOT_FOUND = "RES_PLAN_NOT_FOUND"

     # Business rules
     BIZ_INVALID_STATUS_TRANSITION = "BIZ_INVALID_STATUS_TRANSITION"
     BIZ_OPERATION_NOT_ALLOWED = "BIZ_OPERATION_NOT_ALLOWED"

     # Subscription
     SUB_MANAGER_SUBSCRIPTION_REQUIRED = "SUB_MANAGER_SUBSCRIPTION_REQUIRED"

     # Generic
     ERR_BAD_REQUEST = "ERR_BAD_REQUEST"
     ERR_INTERNAL_SERVER = "ERR_INTERNAL_SERVER"


class DomainError(HTTPException):
     """HTTPException carrying a domain error code."""

     def __init__(self, status_code: int, message: str, code: str, details: Optional[Any] = None):
          super().__init__(status_code=status_code, detail=message)
          self.message = message
          self.code = code
          self.details = details

     def to_dict(self) -> dict:
          body = {"success": False, "message": self.message, "code": self.code}
          if self.details is not None:
               body["details"] = self.details
          return body


def not_found(message: str, code: str = ErrorCodes.RES_NOT_FOUND) -> DomainError:
     return DomainError(status.HTTP_404_NOT_FOUND, message, code)


def forbidden(message: str, code: str = ErrorCodes.ACC_ACCESS_DENIED) -> DomainError:
     return DomainError(status.HTTP_403_FORBIDDEN, message, code)


def bad_request(message: str, code: str = ErrorCodes.ERR_BAD_REQUEST) -> DomainError:
     return DomainError(status.HTTP_400_BAD_REQUEST, message, code)


# Default codes for bare HTTPExceptions raised by FastAPI or dependencies
STATUS_CODE_DEFAULTS = {
     400: ErrorCodes.ERR_BAD_REQUEST,
     401: ErrorCodes.AUTH_UNAUTHORIZED,
     403: ErrorCodes.ACC_ACCESS_DENIED,
     404: ErrorCodes.RES_NOT_FOUND,
}
