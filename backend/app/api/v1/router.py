"""
API v1 Router.

Aggregates all v1 API endpoints. Public routers serve the website; admin
routers are mounted under /admin by their own prefixes.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, blogs, products, principals, announcements,
    customer_registrations, newsletter, users, invitations, hero_backgrounds,
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Public catalog and content
router.include_router(blogs.router)
router.include_router(products.router)
router.include_router(principals.router)
router.include_router(announcements.router)
router.include_router(hero_backgrounds.router)

# Public forms
router.include_router(customer_registrations.router)
router.include_router(newsletter.router)

# Admin endpoints
router.include_router(blogs.admin_router)
router.include_router(products.admin_router)
router.include_router(principals.admin_router)
router.include_router(announcements.admin_router)
router.include_router(hero_backgrounds.admin_router)
router.include_router(users.router)
router.include_router(invitations.router)
