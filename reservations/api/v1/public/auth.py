import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_
from sqlalchemy.orm import Session

from reservations.api.deps import get_current_admin, get_current_superadmin
from reservations.api.rate_limit import auth_limiter
from reservations.core.security import create_access_token, get_password_hash, verify_password
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.schemas.admin import Admin as AdminSchema, AdminCreate, ChangePasswordRequest, Token
from reservations.utils import dates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token, dependencies=[Depends(auth_limiter)])
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.username == form_data.username).first()
    if not admin or not verify_password(form_data.password, admin.password_hash):
        logger.info("Failed admin login for '%s'", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    admin.last_login = dates.utcnow()
    db.commit()
    db.refresh(admin)
    return Token(
        access_token=create_access_token(subject=str(admin.id)),
        token_type="bearer",
        admin=AdminSchema.model_validate(admin),
    )


@router.get("/me", response_model=AdminSchema)
def read_current_admin(current_admin: Admin = Depends(get_current_admin)):
    return current_admin


@router.post("/change-password", dependencies=[Depends(auth_limiter)])
def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    if not verify_password(body.current_password, current_admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    current_admin.password_hash = get_password_hash(body.new_password)
    current_admin.password_changed_at = dates.utcnow()
    db.commit()
    logger.info("Admin '%s' changed their password", current_admin.username)
    return {"message": "Password changed successfully"}


# --- Account management (superadmin only) ---


@router.post("/admins", response_model=AdminSchema, status_code=status.HTTP_201_CREATED)
def create_admin(
    body: AdminCreate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_superadmin),
):
    taken = (
        db.query(Admin)
        .filter(or_(Admin.username == body.username, Admin.email == body.email.lower()))
        .first()
    )
    if taken:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already taken",
        )
    admin = Admin(
        username=body.username,
        email=body.email.lower(),
        password_hash=get_password_hash(body.password),
        role=body.role,
        is_active=True,
        created_by_id=current_admin.id,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin '%s' (%s) created by '%s'", admin.username, admin.role, current_admin.username)
    return admin


@router.get("/admins", response_model=List[AdminSchema])
def list_admins(
    search: Optional[str] = Query(None, description="Match username or email"),
    role: Optional[str] = Query(None, pattern="^(admin|superadmin)$"),
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_superadmin),
):
    query = db.query(Admin)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(Admin.username.ilike(term), Admin.email.ilike(term)))
    if role:
        query = query.filter(Admin.role == role)
    if is_active is not None:
        query = query.filter(Admin.is_active == is_active)
    return query.order_by(Admin.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
