from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# Auth server

class TokenResponse(BaseModel):
    access_token: str
    expires_in: int
    token_type: str = "Bearer"
    refresh_expires_in: Optional[int] = None
    scope: Optional[str] = None


# Gateway job endpoints

class JobInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field("", alias="jobId")


class JobStatusResponse(BaseModel):
    status: str = ""
    result: Optional[str] = None
    error: Optional[str] = None


class UrlsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    urls: list[str] = Field(default_factory=list, alias="Urls")


# File sharing

class UploadData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_url: str = Field(..., alias="fileUrl")
