"""Admin tooling."""

from .service import AdminService, TicketsGranted, build_admin_service

__all__ = ["AdminService", "TicketsGranted", "build_admin_service"]
