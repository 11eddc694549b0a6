from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from ..deps import Services, get_services
from ..models import DbStatusResponse

router = APIRouter(tags=["system"])

@router.get("/", response_class=PlainTextResponse)
async def root():
    return "DataForSEO Backend Running!"

@router.get("/api/db-status", response_model=DbStatusResponse)
async def db_status(services: Services = Depends(get_services)):
    if await services.repo.ping():
        return DbStatusResponse(status="connected", message="Redis is connected successfully!")
    return DbStatusResponse(status="disconnected", message="Redis is not connected.")
