from fastapi import APIRouter, Depends
from ..deps import Services, get_services
from ..errors import UpstreamError

router = APIRouter(prefix="/api", tags=["catalog"])

# Provider catalogs are passed through untouched; failures are reported generically.

@router.get("/languages")
async def languages(services: Services = Depends(get_services)):
    try:
        return await services.provider.list_languages()
    except UpstreamError as exc:
        raise UpstreamError("Failed to fetch languages.") from exc

@router.get("/locations")
async def locations(services: Services = Depends(get_services)):
    try:
        return await services.provider.list_locations()
    except UpstreamError as exc:
        raise UpstreamError("Failed to fetch locations.") from exc
