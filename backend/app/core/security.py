from dataclasses import dataclass

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.app.core.config import AuthPolicy, settings
from backend.app.core.exceptions import ForbiddenError, UnauthorizedError


@dataclass(frozen=True)
class Principal:
    subject: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_policy() -> AuthPolicy:
    return settings.AUTH_POLICY


def decode_token(token: str) -> Principal:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc

    subject = claims.get("sub")
    if not subject:
        raise UnauthorizedError("Token has no subject")
    return Principal(subject=str(subject), role=str(claims.get("role", "user")))


def issue_token(subject: str, role: str = "user") -> str:
    return jwt.encode({"sub": subject, "role": role}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> Principal | None:
    """Resolve the caller according to the configured policy."""
    if policy is AuthPolicy.DISABLED:
        return None
    if credentials is None:
        if policy is AuthPolicy.REQUIRED:
            raise UnauthorizedError()
        return None
    return decode_token(credentials.credentials)


async def public_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> Principal | None:
    """Guest operations: anonymous callers always pass, a presented token must be valid."""
    if policy is AuthPolicy.DISABLED or credentials is None:
        return None
    return decode_token(credentials.credentials)


async def require_admin(
    principal: Principal | None = Depends(current_principal),
) -> Principal | None:
    """Staff-only guard; anonymous callers pass only when the policy lets them."""
    if principal is not None and not principal.is_admin:
        raise ForbiddenError("Access denied. Admin only.")
    return principal
