from fastapi import APIRouter
from society.api.v1.endpoints import auth, flats, maintenance, admin

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(flats.router, prefix="/flats", tags=["Flats"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
api_router.include_router(admin.router)
