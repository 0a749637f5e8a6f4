"""
API v1 routes.
"""

from fastapi import APIRouter

from kms.api.v1 import (
    admin,
    audit,
    auth,
    config,
    dashboard,
    knowledge,
    leaderboard,
    manager,
    mentorship,
    migrations,
    recommendations,
    training,
    validations,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(knowledge.router, prefix="/knowledge", tags=["Knowledge"])
router.include_router(validations.router, prefix="/validations", tags=["Validations"])
router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
router.include_router(audit.router, prefix="/audit", tags=["Audit"])
router.include_router(config.router, prefix="/config", tags=["Configuration"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(manager.router, prefix="/manager", tags=["Manager"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
router.include_router(mentorship.router, prefix="/mentorship", tags=["Mentorship"])
router.include_router(training.router, prefix="/training", tags=["Training"])
router.include_router(migrations.router, prefix="/migrations", tags=["Migrations"])
router.include_router(recommendations.router, prefix="/recommendations", tags=["Recommendations"])
