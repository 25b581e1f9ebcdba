"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from ambureview.app.api.v1.endpoints import (
    auth, users, ambulances, reviews, checklists, inventory, ampulario, usvb,
    incidents, alerts, jobs, notifications, audit, config
)

router = APIRouter()

# Authentication and accounts
router.include_router(auth.router)
router.include_router(users.router)

# Fleet and review workflow
router.include_router(ambulances.router)
router.include_router(reviews.router)
router.include_router(checklists.router)

# Stock: ambulance inventory, central store, kits
router.include_router(inventory.materials_router)
router.include_router(inventory.router)
router.include_router(ampulario.router)
router.include_router(usvb.router)

# Incidents, derived alerts and scheduled jobs
router.include_router(incidents.router)
router.include_router(alerts.router)
router.include_router(jobs.router)

# Notifications
router.include_router(notifications.router)
router.include_router(notifications.admin_router)

# Administration
router.include_router(audit.router)
router.include_router(config.router)
