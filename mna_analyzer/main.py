"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mna_analyzer import __version__
from mna_analyzer.api import router as api_router
from mna_analyzer.calculations.errors import FinancialError, ValidationError
from mna_analyzer.config import get_settings
from mna_analyzer.logging_config import configure_logging

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="M&A deal valuation and return analysis",
    version=__version__,
    debug=settings.debug,
)


@app.exception_handler(FinancialError)
async def financial_error_handler(request: Request, exc: FinancialError):
    """Translate engine errors: bad input is 400, numeric failure is 422."""
    status_code = 400 if isinstance(exc, ValidationError) else 422
    logger.info(f"{exc.kind.value} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
