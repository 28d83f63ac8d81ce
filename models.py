from pydantic import BaseModel
from typing import List


class ImageListResponse(BaseModel):
    """Uploaded image URLs for one bucket"""
    images: List[str]


class UploadResponse(BaseModel):
    """Public URL of a saved upload"""
    url: str


class DeleteResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str
    service: str
