from fastapi import APIRouter

from staffhub.api.admin import admin_router
from staffhub.api.forms import org_forms_router, public_forms_router
from staffhub.api.org import org_router
from staffhub.api.organizations import organizations_router
from staffhub.api.reference import reference_router

api_router = APIRouter()
api_router.include_router(organizations_router)
api_router.include_router(reference_router)
api_router.include_router(public_forms_router)
api_router.include_router(org_forms_router)
api_router.include_router(admin_router)
api_router.include_router(org_router)
