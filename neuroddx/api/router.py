from fastapi import APIRouter
from neuroddx.api.endpoints import assessment

api_router = APIRouter()

# Register the endpoints
api_router.include_router(assessment.router, tags=["Assessment"])
