"""
Upload domain models.

This module holds the wire DTOs exchanged with the console server and the
client-side UploadSession they are normalised into. Status strings are parsed
into UploadLifecycleStatus here, so the rest of the code works with the enum.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadLifecycleStatus(Enum):
    """Lifecycle status of a server-side upload."""
    CREATED = "created"
    UPLOADED = "uploaded"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "UploadLifecycleStatus":
        """
        Normalise a status literal reported by the server.

        Matching is case-insensitive. The server reports a finished upload as
        either "UPLOADED" or "completed"; both map to UPLOADED. Anything not
        recognised maps to UNKNOWN.
        """
        if raw is None:
            return cls.UNKNOWN
        value = raw.strip().lower()
        if value == "completed":
            return cls.UPLOADED
        for status in cls:
            if status.value == value:
                return status
        return cls.UNKNOWN

    @property
    def is_upload_complete(self) -> bool:
        """Server holds every byte of the archive."""
        return self is UploadLifecycleStatus.UPLOADED

    @property
    def is_extraction_pending(self) -> bool:
        """Extraction has not reached a terminal state yet."""
        return self in (UploadLifecycleStatus.UPLOADED, UploadLifecycleStatus.EXTRACTING)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateUploadRequest(_WireModel):
    """Body of the "create upload" call."""
    file_name: str = Field(..., alias="fileName", description="Archive file name")
    file_size: int = Field(..., alias="fileSize", ge=0, description="Archive size in bytes")


class ChunkedUploadMetadata(_WireModel):
    """Metadata part sent with every chunk."""
    chunk_size: int = Field(..., alias="chunkSize", ge=1, description="Bytes in this chunk")


class ChunkedUploadDto(_WireModel):
    """Upload object returned by the server after every call."""
    guid: Optional[str] = Field(None, description="Upload identifier")
    status: Optional[str] = Field(None, description="Upload status literal")
    current_offset: Optional[int] = Field(
        None, alias="currentOffset", description="Bytes acknowledged by the server")


class ApiInfoDto(_WireModel):
    """Server information, including capability flags."""
    api_version: Optional[str] = Field(None, alias="apiVersion")
    enable_package_path_check: bool = Field(False, alias="enablePackagePathCheck")


@dataclass
class UploadSession:
    """Client-side view of one server upload session."""
    app_guid: str
    guid: str
    status: UploadLifecycleStatus = UploadLifecycleStatus.CREATED
    raw_status: Optional[str] = None
    acknowledged_offset: int = 0

    @classmethod
    def from_dto(cls, app_guid: str, dto: ChunkedUploadDto) -> "UploadSession":
        if not dto.guid or not dto.guid.strip():
            raise ValueError("Upload response carries no identifier")
        session = cls(app_guid=app_guid, guid=dto.guid)
        session.apply(dto)
        return session

    def apply(self, dto: ChunkedUploadDto) -> None:
        """Replace the known status (and offset, when reported) with the server's."""
        self.raw_status = dto.status
        self.status = UploadLifecycleStatus.parse(dto.status)
        if dto.current_offset is not None:
            self.acknowledged_offset = dto.current_offset

    @property
    def status_label(self) -> str:
        return self.raw_status if self.raw_status is not None else self.status.name
