from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reservations.api.deps import get_current_admin
from reservations.api.responses import envelope_response
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.schemas.system_settings import SystemSettingsUpdate
from reservations.services.system_settings import SettingsService

router = APIRouter(prefix="/admin/settings", tags=["Admin - Settings"])


@router.get("/")
def get_settings(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(SettingsService(db).get())


@router.put("/")
def update_settings(
    body: SystemSettingsUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Partial update of the booking policy; omitted fields keep their value."""
    return envelope_response(SettingsService(db).update(body))
