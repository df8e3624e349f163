"""
Request-scoped dependencies: database session and principal resolution.

Tokens carry `sub = "<kind>:<id>"` where kind is employee, employer or
admin; admin tokens also carry `role`. Role checks are done by the
`require_roles(...)` factory before a handler runs.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from jobportal.core.exceptions import AuthorizationError
from jobportal.core.security import decode_access_token
from jobportal.db.session import SessionLocal
from jobportal.db.models.admin import Admin
from jobportal.db.models.enums import AdminRole, UserType
from jobportal.db.models.user import Employee, Employer, USER_MODELS

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

ADMIN_KIND = "admin"
PRINCIPAL_KINDS = (UserType.EMPLOYEE.value, UserType.EMPLOYER.value, ADMIN_KIND)


@dataclass(frozen=True)
class Principal:
    id: int
    kind: str
    role: Optional[str] = None

    @property
    def subject(self) -> str:
        return f"{self.kind}:{self.id}"


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def token_claims_for(kind: str, principal_id: int, role: Optional[str] = None) -> dict:
    """Claims to pass to create_access_token for a principal."""
    claims = {"sub": f"{kind}:{principal_id}"}
    if role:
        claims["role"] = role
    return claims


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Resolve the bearer token into {id, kind, role}."""
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise _invalid_token()

    subject = payload.get("sub")
    if not subject or ":" not in subject:
        raise _invalid_token()

    kind, _, raw_id = subject.partition(":")
    if kind not in PRINCIPAL_KINDS or not raw_id.isdigit():
        raise _invalid_token()

    return Principal(id=int(raw_id), kind=kind, role=payload.get("role"))


def get_current_admin(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Admin:
    """Load the Admin row behind an admin token; the role is re-read from the row."""
    if principal.kind != ADMIN_KIND:
        raise AuthorizationError("Unauthorized access")

    admin = db.query(Admin).filter(Admin.id == principal.id).first()
    if not admin:
        raise _invalid_token()
    return admin


def require_roles(*roles: AdminRole):
    """
    Dependency factory allowing only admins whose role is in `roles`.

    Usage: `admin: Admin = Depends(require_roles(AdminRole.SUPER_ADMIN))`
    """
    allowed = {role.value for role in roles}

    def role_checker(admin: Admin = Depends(get_current_admin)) -> Admin:
        if admin.role not in allowed:
            logger.warning(f"Role check failed: admin_id={admin.id}, role={admin.role}, allowed={sorted(allowed)}")
            raise AuthorizationError("Unauthorized access")
        return admin

    return role_checker


ANY_ADMIN = (AdminRole.SUPER_ADMIN, AdminRole.MANAGER, AdminRole.STAFF)


def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
) -> Union[Employee, Employer]:
    """Load the employee or employer behind a subscriber token."""
    if principal.kind == ADMIN_KIND:
        raise AuthorizationError("This action is only available to employees and employers")

    model = USER_MODELS[UserType(principal.kind)]
    user = db.query(model).filter(model.id == principal.id).first()
    if not user:
        raise _invalid_token()
    return user


def require_user_type(user_type: UserType):
    """Dependency factory restricting a route to one subscriber kind."""

    def user_checker(user=Depends(get_current_user)):
        if user.user_type != user_type.value:
            raise AuthorizationError(f"This action is only available to {user_type.value}s")
        return user

    return user_checker
