# Central API router include file
from fastapi import APIRouter

# Import domain routers
from rules_service.rules.router import router as rules_router
from rules_service.threats.router import router as threats_router
from rules_service.templates.router import router as templates_router

# Create main API router
api_router = APIRouter()

# Include domain routers with prefixes
api_router.include_router(rules_router)
api_router.include_router(threats_router)
api_router.include_router(templates_router)
