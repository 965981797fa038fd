from fastapi import APIRouter

from worker_service.api.dtos import DataResponse, VersionInfo
from worker_service.version import get_version

router = APIRouter(prefix="/info", tags=["Info"])


@router.get("/version", response_model=DataResponse)
async def version():
    """Report the running service version. No credentials are required."""
    return DataResponse(data=VersionInfo(version=get_version()))
