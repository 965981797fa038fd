from typing import Optional

from pydantic import BaseModel, Field


class BaseResponse(BaseModel):
    status: str = "success"


class VersionInfo(BaseModel):
    version: str


class DataResponse(BaseResponse):
    data: Optional[VersionInfo] = None


class StartJobRequest(BaseModel):
    command: str = Field(..., description="Command line to run, split on single spaces")


class StopJobRequest(BaseModel):
    id: str = Field(..., description="ID of the job to stop")
