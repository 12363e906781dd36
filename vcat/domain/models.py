from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    METADATA_EXTRACTED = "METADATA_EXTRACTED"
    RENDITIONS_GENERATED = "RENDITIONS_GENERATED"
    TAGS_RECONCILED = "TAGS_RECONCILED"
    DONE = "DONE"
    FAILED = "FAILED"

class RenditionKind(str, Enum):
    RAW = "raw"
    FULL = "full"
    SCALED = "scaled"
    THUMBNAIL = "thumbnail"
    THUMBNAIL_SQ = "thumbnail_sq"

class ResizeMode(str, Enum):
    FIT = "fit"    # fit within box, preserve aspect, center
    FILL = "fill"  # fill box, crop excess, center

class RenditionInfo(BaseModel):
    height: Optional[int] = None
    width: Optional[int] = None
    size: Optional[int] = None
    path: Optional[str] = None

class VideoMetadata(BaseModel):
    source_name: Optional[str] = None

    video_codec_name: Optional[str] = None
    frame_rate: Optional[str] = None
    rotation: int = 0
    duration: Optional[float] = None
    frame_count: Optional[int] = None
    creation_time: Optional[datetime] = None
    dimensions_swapped: bool = False

    audio_codec_name: Optional[str] = None
    audio_sample_rate: Optional[float] = None
    audio_channel_count: Optional[int] = None

    latitude: Optional[float] = None
    latitude_ref: Optional[str] = None
    longitude: Optional[float] = None
    longitude_ref: Optional[str] = None

    raw: RenditionInfo = Field(default_factory=RenditionInfo)
    full: RenditionInfo = Field(default_factory=RenditionInfo)
    scaled: RenditionInfo = Field(default_factory=RenditionInfo)
    thumbnail: RenditionInfo = Field(default_factory=RenditionInfo)
    thumbnail_sq: RenditionInfo = Field(default_factory=RenditionInfo)

    is_teaser: bool = False

class CategoryInfo(BaseModel):
    """Catalog category for one run. Immutable once parsed."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    year: int = Field(gt=0)
    allowed_roles: Tuple[str, ...] = ()

class RenditionJob(BaseModel):
    index: int
    source_path: Path
    status: JobStatus = JobStatus.QUEUED
    metadata: Optional[VideoMetadata] = None
    error_message: Optional[str] = None
