from fastapi import APIRouter

# Auth
from reservations.api.v1.public.auth import router as auth_router

# Public: booking flow
from reservations.api.v1.public.bookings import router as bookings_router

# Admin
from reservations.api.v1.admin.bookings import router as admin_bookings_router
from reservations.api.v1.admin.registrations import router as registrations_router
from reservations.api.v1.admin.events import router as events_router
from reservations.api.v1.admin.settings import router as settings_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Admin ---
api_router.include_router(admin_bookings_router)
api_router.include_router(registrations_router)
api_router.include_router(events_router)
api_router.include_router(settings_router)
