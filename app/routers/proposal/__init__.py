from fastapi import APIRouter

from app.routers.proposal import listing, detail, status, vote


router = APIRouter()

# BHAP sub-routers
router.include_router(listing.router)
router.include_router(detail.router)
router.include_router(status.router)
router.include_router(vote.router)
