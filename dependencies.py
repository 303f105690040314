# dependencies.py
"""
Shared FastAPI dependencies: bearer token verification and the current user.

Tokens are issued by the auth service; this backend only verifies them and
reads the `id` claim.
"""
from fastapi import Depends, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import JWT_SECRET, JWT_ALGORITHM
from database import get_session
from models import User, UserRole
from utils.errors import DomainError, ErrorCodes


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise DomainError(status.HTTP_401_UNAUTHORIZED, "Missing token", ErrorCodes.AUTH_NO_TOKEN)
     token = auth.split(" ", 1)[1]
     try:
          payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
     except JWTError:
          raise DomainError(status.HTTP_401_UNAUTHORIZED, "Invalid token", ErrorCodes.AUTH_INVALID_TOKEN)
     if not payload.get("id"):
          raise DomainError(status.HTTP_401_UNAUTHORIZED, "Invalid token", ErrorCodes.AUTH_INVALID_TOKEN)
     return payload


def get_current_user(
     token: dict = Depends(verify_token),
     db: Session = Depends(get_session)
) -> User:
     """Load the authenticated user, rejecting unknown or deactivated accounts."""
     user = db.query(User).filter(User.id == str(token["id"])).first()
     if not user or not user.is_active:
          raise DomainError(status.HTTP_401_UNAUTHORIZED, "User not found or inactive", ErrorCodes.AUTH_UNAUTHORIZED)
     return user


def require_role(*roles: UserRole):
     """Dependency factory: the current user must hold one of `roles`."""
     def _checker(user: User = Depends(get_current_user)) -> User:
          if user.role not in roles:
               allowed = ", ".join(r.value for r in roles)
               raise DomainError(
                    status.HTTP_403_FORBIDDEN,
                    f"Access denied. Required role: {allowed}",
                    ErrorCodes.ACC_ROLE_REQUIRED,
               )
          return user
     return _checker
