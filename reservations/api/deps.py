from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.core.security import decode_token
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.services.notifications import NotificationService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_current_admin(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> Admin:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    admin_id = decode_token(token)
    if admin_id is None:
        raise credentials_exception
    try:
        admin = db.get(Admin, UUID(admin_id))
    except ValueError:
        raise credentials_exception
    if admin is None:
        raise credentials_exception
    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return admin


def get_notifier() -> NotificationService:
    return NotificationService()


def get_current_superadmin(current_admin: Admin = Depends(get_current_admin)) -> Admin:
    if current_admin.role != "superadmin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a superadmin can manage admin accounts",
        )
    return current_admin
