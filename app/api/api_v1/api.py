from fastapi import APIRouter
from app.api.api_v1.endpoints import (
    appointments,
    cases,
    clients,
    consultations,
    dashboard,
    files,
    health,
    invoices,
    live,
    navigation,
    notifications,
    receipts,
    reports,
    search,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(navigation.router, prefix="/navigation", tags=["navigation"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(cases.router, prefix="/cases", tags=["cases"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(consultations.router, prefix="/consultations", tags=["consultations"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(live.router, prefix="/live", tags=["live"])
