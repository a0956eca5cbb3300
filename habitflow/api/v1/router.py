from fastapi import APIRouter
from habitflow.api.v1.endpoints import achievements, insights

# Create main API router
api_router = APIRouter(redirect_slashes=False)

# Both routers carry full paths (/users/{user_id}/..., /achievements/...)
api_router.include_router(insights.router, tags=["AI Insights"])
api_router.include_router(achievements.router, tags=["Achievements"])
