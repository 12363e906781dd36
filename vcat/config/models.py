import os
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_EXTENSIONS = [".flv", ".vob", ".mpg", ".mpeg", ".avi", ".3gp", ".m4v", ".mp4", ".mov"]

TEASER_POLICIES = {"input_order", "first_completed"}

def resolve_worker_count(threads: Optional[int]) -> int:
    """Explicit thread count, or one less than the logical CPU count (min 1)."""
    if threads:
        return threads
    return max((os.cpu_count() or 1) - 1, 1)

class GeneralConfig(BaseModel):
    threads: Optional[int] = Field(default=None, gt=0)
    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    web_root: str = "/movies"
    default_roles: List[str] = Field(default_factory=lambda: ["admin", "friend"])
    private_roles: List[str] = Field(default_factory=lambda: ["admin"])
    teaser_selection: str = "input_order"
    log_path: Optional[str] = None
    debug: bool = False

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        return [(ext if ext.startswith(".") else f".{ext}").lower() for ext in v]

    @field_validator("teaser_selection")
    @classmethod
    def validate_teaser_selection(cls, v: str) -> str:
        if v not in TEASER_POLICIES:
            raise ValueError(f"Unsupported teaser_selection: {v}. Use one of {sorted(TEASER_POLICIES)}")
        return v

    @field_validator("web_root")
    @classmethod
    def validate_web_root(cls, v: str) -> str:
        v = v.rstrip("/")
        if not v.startswith("/"):
            raise ValueError(f"web_root must be an absolute URL path, got {v!r}")
        return v

class ToolsConfig(BaseModel):
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    exiftool_path: Optional[str] = None  # None = exiftool on PATH

class RenditionConfig(BaseModel):
    codec: Literal["h264", "webm"] = "h264"
    full_min_dimension: int = Field(default=480, gt=0)
    scaled_min_dimension: int = Field(default=240, gt=0)
    thumb_width: int = Field(default=240, gt=0)
    thumb_height: int = Field(default=160, gt=0)
    thumb_sq_width: int = Field(default=160, gt=0)
    thumb_sq_height: int = Field(default=120, gt=0)
    thumbnail_seconds: float = Field(default=2.0, ge=0.0)
    jpeg_quality: int = Field(default=90, ge=1, le=95)

    @field_validator("full_min_dimension", "scaled_min_dimension")
    @classmethod
    def validate_even(cls, v: int) -> int:
        # h264/yuv420p need even frame dimensions
        if v % 2 != 0:
            raise ValueError(f"Minimum dimension must be even, got {v}")
        return v

class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    renditions: RenditionConfig = Field(default_factory=RenditionConfig)
