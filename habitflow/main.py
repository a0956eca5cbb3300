from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from habitflow.core.config import settings
from habitflow.core.analytics import initialize_posthog, shutdown_posthog
from habitflow.core.health import build_health_report, HealthStatus
from habitflow.api.v1.router import api_router
from habitflow.services.logger import logger

# Create FastAPI app
app = FastAPI(
    title="HabitFlow API",
    description="Habit tracking achievements and AI insights",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health")
async def health_check():
    report = await build_health_report(api_version=app.version)
    status_code = (
        status.HTTP_200_OK
        if report.status != HealthStatus.CRITICAL
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(content=report.model_dump(mode="json"), status_code=status_code)


@app.on_event("startup")
async def startup_event():
    if settings.POSTHOG_API_KEY:
        initialize_posthog()
        logger.info("PostHog analytics active")

    logger.info("HabitFlow API started")


@app.on_event("shutdown")
async def shutdown_event():
    if settings.POSTHOG_API_KEY:
        try:
            shutdown_posthog()
        except Exception as e:
            logger.warning(f"PostHog shutdown failed: {e}")

    logger.info("HabitFlow API shutting down")


if __name__ == "__main__":
    uvicorn.run(
        "habitflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
    )
