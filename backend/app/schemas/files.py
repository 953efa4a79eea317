"""Schemas for uploaded files."""

from pydantic import BaseModel


class UploadRead(BaseModel):
    """Location and metadata of a stored upload."""

    url: str
    file_name: str
    mime_type: str
    size: int
