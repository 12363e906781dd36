from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Optional
from vcat.config.models import RenditionConfig
from vcat.domain.models import RenditionKind, ResizeMode
from vcat.pipeline.scaling import scale_dimensions

RENDITION_DIRS: Dict[RenditionKind, str] = {
    RenditionKind.RAW: "raw",
    RenditionKind.FULL: "full",
    RenditionKind.SCALED: "scaled",
    RenditionKind.THUMBNAIL: "thumbnails",
    RenditionKind.THUMBNAIL_SQ: "thumb_sq",
}

IMAGE_EXTENSION = ".jpg"


@dataclass(frozen=True)
class RenditionTarget:
    kind: RenditionKind
    local_path: Path
    web_path: str
    # Exact output size for videos, bounding box for images
    height: int
    width: int
    resize_mode: Optional[ResizeMode] = None


@dataclass(frozen=True)
class RenditionPlan:
    raw: RenditionTarget
    full: RenditionTarget
    scaled: RenditionTarget
    thumbnail: RenditionTarget
    thumbnail_sq: RenditionTarget


class RenditionPlanner:
    """Computes target dimensions and local/web paths for one source file.

    Web paths follow `<web_root>/<year>/<category dir>/<rendition dir>/<file>`.
    """

    def __init__(self, video_dir: Path, web_root: str, year: int, config: RenditionConfig, video_extension: str):
        self.video_dir = video_dir
        self.web_dir = PurePosixPath(web_root or "/") / str(year) / video_dir.name
        self.config = config
        self.video_extension = video_extension

    def local_path(self, kind: RenditionKind, file_name: str) -> Path:
        return self.video_dir / RENDITION_DIRS[kind] / file_name

    def web_path(self, kind: RenditionKind, file_name: str) -> str:
        return str(self.web_dir / RENDITION_DIRS[kind] / file_name)

    def _target(self, kind: RenditionKind, file_name: str, height: int, width: int,
                resize_mode: Optional[ResizeMode] = None) -> RenditionTarget:
        return RenditionTarget(
            kind=kind,
            local_path=self.local_path(kind, file_name),
            web_path=self.web_path(kind, file_name),
            height=height,
            width=width,
            resize_mode=resize_mode,
        )

    def output_stem(self, source_name: str) -> str:
        """Base name shared by the full, scaled and thumbnail outputs of a source."""
        return Path(source_name).stem

    def plan(self, source_name: str, raw_height: int, raw_width: int) -> RenditionPlan:
        """Plans all renditions from the rotation-corrected raw dimensions."""
        stem = self.output_stem(source_name)
        video_name = f"{stem}{self.video_extension}"
        image_name = f"{stem}{IMAGE_EXTENSION}"
        cfg = self.config

        full = scale_dimensions(cfg.full_min_dimension, raw_height, raw_width)
        scaled = scale_dimensions(cfg.scaled_min_dimension, raw_height, raw_width)

        return RenditionPlan(
            raw=self._target(RenditionKind.RAW, source_name, raw_height, raw_width),
            full=self._target(RenditionKind.FULL, video_name, full.height, full.width),
            scaled=self._target(RenditionKind.SCALED, video_name, scaled.height, scaled.width),
            thumbnail=self._target(
                RenditionKind.THUMBNAIL, image_name, cfg.thumb_height, cfg.thumb_width, ResizeMode.FIT
            ),
            thumbnail_sq=self._target(
                RenditionKind.THUMBNAIL_SQ, image_name, cfg.thumb_sq_height, cfg.thumb_sq_width, ResizeMode.FILL
            ),
        )
