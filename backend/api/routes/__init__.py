"""API Routes."""

from fastapi import APIRouter, Depends

from api.middleware.maintenance import enforce_maintenance_mode

from .advertisements import router as advertisements_router
from .api_keys import router as api_keys_router
from .articles import router as articles_router
from .auth import router as auth_router
from .billing import router as billing_router
from .comments import router as comments_router
from .ghost import router as ghost_router
from .health import router as health_router
from .media import router as media_router
from .newsletter import router as newsletter_router
from .search import router as search_router
from .site import router as site_router
from .space import router as space_router
from .taxonomy import router as taxonomy_router
from .users import router as users_router

# Create main API router; maintenance mode applies to every route below
api_router = APIRouter(dependencies=[Depends(enforce_maintenance_mode)])

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(articles_router)
api_router.include_router(comments_router)
api_router.include_router(taxonomy_router)
api_router.include_router(media_router)
api_router.include_router(advertisements_router)
api_router.include_router(newsletter_router)
api_router.include_router(api_keys_router)
api_router.include_router(search_router)
api_router.include_router(site_router)
api_router.include_router(space_router)
api_router.include_router(ghost_router)
api_router.include_router(billing_router)
