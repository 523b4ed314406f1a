"""
API routes for the deal analyzer.
"""

from fastapi import APIRouter

from mna_analyzer.api import calculations

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
