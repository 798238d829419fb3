# crm_campaigns/api/v1/api.py

from fastapi import APIRouter
from crm_campaigns.api.v1.endpoints import campaigns, clients

# This is the main router for the v1 API.
# Public tracking routes live outside it, see endpoints/tracking.py.
api_router = APIRouter()

api_router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
