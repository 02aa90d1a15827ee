import logging
from typing import Optional

from fastapi import Request, Depends
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import decode_access_token
from .errors import ApiError
from mindcare.db.repository import SchedulingRepository
from mindcare.db.session import get_db_session
from mindcare.schemas.shared import CurrentUser

logger = logging.getLogger(__name__)

# List of paths that should be excluded from authentication checks
PUBLIC_PATHS = [
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc"
]


def _user_from_token(token: str) -> Optional[CurrentUser]:
    try:
        token_data = decode_access_token(token)
        return CurrentUser(user_id=token_data.get("sub"), role=token_data.get("role"))
    except (JWTError, ValidationError) as e:
        # Continue without user info if token is invalid
        logger.debug(f"Ignoring invalid session token: {e}")
        return None


async def verify_token_middleware(request: Request, call_next):
    """
    Middleware to check the session cookie and add the authenticated user to request state.
    This doesn't block unauthenticated requests, but just adds user info if authenticated.
    """
    request.state.user = None

    # Skip authentication for public paths
    if any(request.url.path.startswith(public_path) for public_path in PUBLIC_PATHS):
        return await call_next(request)

    session_cookie = request.cookies.get("session")
    if session_cookie:
        request.state.user = _user_from_token(session_cookie)
    # Check for Authorization header if session cookie is not present
    else:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            request.state.user = _user_from_token(auth_header.split(" ")[1])

    response = await call_next(request)
    return response

# FastAPI dependency for protected routes
def get_current_user(request: Request) -> CurrentUser:
    """
    Dependency to use in FastAPI route functions that require authentication.
    This will raise a 401 if the user is not authenticated.
    """
    user = getattr(request.state, "user", None)
    if not user:
        raise ApiError(401, "Unauthorized", "UNAUTHORIZED")
    return user

def require_roles(roles: list):
    """
    Factory function to create a dependency that requires specific roles.
    Usage: @router.patch("/x", dependencies=[Depends(require_roles([Role.admin]))])
    """
    def _require_roles(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise ApiError(403, "Not enough permissions", "FORBIDDEN")
        return user

    return _require_roles


# Get a database session dependency
async def get_db(request: Request):
    """Yield an async SQLAlchemy session (dependency)."""
    async for session in get_db_session(request):
        yield session


def get_scheduling_repository(db: AsyncSession = Depends(get_db)) -> SchedulingRepository:
    """Scheduling data access bound to this request's session."""
    return SchedulingRepository(db)
