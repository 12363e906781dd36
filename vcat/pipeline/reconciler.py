"""Merges ffprobe stream data with ExifTool tag data into one VideoMetadata.

The two sources disagree in practice:

- creation time may come from either; the container (probe) value wins.
- GPS is only ever present in tags.
- rotation is usually reported by the container, but some devices only write
  it to the embedded tags. Either way a 90/270 degree rotation means the
  stored frame is sideways, so raw width/height are swapped before any
  scaling sees them. The swap happens at most once per record.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from vcat.domain.errors import FieldParseError, MissingVideoStream
from vcat.domain.models import VideoMetadata

T = TypeVar("T")

CODEC_TYPE_VIDEO = "video"
CODEC_TYPE_AUDIO = "audio"

SWAP_ROTATIONS = {90, 270}

EXIF_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S%z", "%Y:%m:%d %H:%M:%S")


def _parse_int(field: str, value: Any) -> int:
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        raise FieldParseError(field, value) from None


def _parse_float(field: str, value: Any) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        raise FieldParseError(field, value) from None


def _parse_iso_datetime(field: str, value: Any) -> datetime:
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise FieldParseError(field, value) from None


def _parse_exif_datetime(field: str, value: Any) -> datetime:
    text = str(value).strip()
    # QuickTime writes all-zero dates when the clock was never set
    if not text or text.startswith("0000:00:00"):
        raise FieldParseError(field, value)
    # ExifTool prints offsets as +HH:MM; strptime's %z accepts that form
    for fmt in EXIF_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise FieldParseError(field, value)


def _hemisphere_ref(field: str, value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise FieldParseError(field, value)
    return text[0].upper()


def partition_streams(probe_data: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Groups probe streams by their declared codec_type, keeping probe order."""
    partitions: Dict[str, List[Dict[str, Any]]] = {}
    for stream in probe_data.get("streams", []) or []:
        codec_type = str(stream.get("codec_type") or "unknown").lower()
        partitions.setdefault(codec_type, []).append(stream)
    return partitions


def needs_swap(rotation: int) -> bool:
    return abs(rotation) in SWAP_ROTATIONS


class MetadataReconciler:
    """Builds a VideoMetadata record from probe + tag data."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _best_effort(self, parser: Callable[[str, Any], T], field: str, value: Any, source: str) -> Optional[T]:
        """Parse one field; malformed values are logged and left unset."""
        if value is None:
            return None
        try:
            return parser(field, value)
        except FieldParseError as e:
            self.logger.debug(f"FIELD_SKIPPED: {source} {e}")
            return None

    def _select_streams(
        self, probe_data: Dict[str, Any], source: str
    ) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        partitions = partition_streams(probe_data)

        videos = partitions.pop(CODEC_TYPE_VIDEO, [])
        if not videos:
            raise MissingVideoStream(f"No video stream found in {source}")
        if len(videos) > 1:
            self.logger.warning(f"{source}: {len(videos)} video streams found, using the first one")

        audios = partitions.pop(CODEC_TYPE_AUDIO, [])
        if len(audios) > 1:
            self.logger.warning(f"{source}: {len(audios)} audio streams found, ignoring all but the first")

        for codec_type, streams in partitions.items():
            self.logger.warning(f"{source}: ignoring {len(streams)} stream(s) of unknown type '{codec_type}'")

        return videos[0], (audios[0] if audios else None)

    def _probe_rotation(self, video: Dict[str, Any], source: str) -> int:
        tags = video.get("tags") or {}
        rotation = self._best_effort(_parse_int, "rotate", tags.get("rotate"), source)
        if not rotation:
            # Newer ffprobe builds report rotation only via the display matrix
            for side_data in video.get("side_data_list") or []:
                if "rotation" in side_data:
                    rotation = self._best_effort(_parse_int, "rotation", side_data["rotation"], source)
                    break
        return rotation or 0

    def _swap_dimensions(self, metadata: VideoMetadata, rotation: int, origin: str, source: str) -> None:
        if metadata.dimensions_swapped:
            return
        metadata.raw.width, metadata.raw.height = metadata.raw.height, metadata.raw.width
        metadata.dimensions_swapped = True
        self.logger.info(
            f"ROTATION_SWAP: {source} {origin} rotation={rotation} "
            f"-> raw={metadata.raw.width}x{metadata.raw.height}"
        )

    def reconcile(self, probe_data: Dict[str, Any], tag_data: Optional[Dict[str, Any]] = None, source: str = "") -> VideoMetadata:
        """Returns a fresh record; raises MissingVideoStream when there is no video."""
        tag_data = tag_data or {}
        video, audio = self._select_streams(probe_data, source)
        fmt = probe_data.get("format") or {}
        video_tags = video.get("tags") or {}
        format_tags = fmt.get("tags") or {}

        metadata = VideoMetadata(source_name=source or None)
        metadata.video_codec_name = video.get("codec_name")
        metadata.raw.width = self._best_effort(_parse_int, "width", video.get("width"), source)
        metadata.raw.height = self._best_effort(_parse_int, "height", video.get("height"), source)
        metadata.frame_rate = video.get("r_frame_rate")
        metadata.duration = self._best_effort(_parse_float, "duration", video.get("duration"), source)
        if metadata.duration is None:
            metadata.duration = self._best_effort(_parse_float, "format.duration", fmt.get("duration"), source)
        metadata.frame_count = self._best_effort(_parse_int, "nb_frames", video.get("nb_frames"), source)
        metadata.creation_time = self._best_effort(
            _parse_iso_datetime, "creation_time", video_tags.get("creation_time"), source
        )
        if metadata.creation_time is None:
            metadata.creation_time = self._best_effort(
                _parse_iso_datetime, "format.creation_time", format_tags.get("creation_time"), source
            )
        metadata.rotation = self._probe_rotation(video, source)

        if audio is not None:
            metadata.audio_codec_name = audio.get("codec_name")
            metadata.audio_sample_rate = self._best_effort(_parse_float, "sample_rate", audio.get("sample_rate"), source)
            metadata.audio_channel_count = self._best_effort(_parse_int, "channels", audio.get("channels"), source)

        if needs_swap(metadata.rotation):
            self._swap_dimensions(metadata, metadata.rotation, "probe", source)
        self.apply_tag_rotation(metadata, tag_data, source)

        self.merge_tags(metadata, tag_data, source)
        return metadata

    def apply_tag_rotation(self, metadata: VideoMetadata, tag_data: Dict[str, Any], source: str = "") -> None:
        """Swap using the tag rotation when the container reported none."""
        if metadata.rotation != 0:
            return
        tag_rotation = self._best_effort(_parse_int, "Rotation", tag_data.get("Rotation"), source)
        if tag_rotation and needs_swap(tag_rotation):
            self._swap_dimensions(metadata, tag_rotation, "tag", source)

    def merge_tags(self, metadata: VideoMetadata, tag_data: Dict[str, Any], source: str = "") -> None:
        """Creation-time fallback and GPS enrichment from tags. Idempotent."""
        if metadata.creation_time is None:
            metadata.creation_time = self._best_effort(
                _parse_exif_datetime, "CreateDate", tag_data.get("CreateDate"), source
            )

        metadata.latitude, metadata.latitude_ref = self._coordinate(
            tag_data, "GPSLatitude", "GPSLatitudeRef", ("N", "S"), source
        )
        metadata.longitude, metadata.longitude_ref = self._coordinate(
            tag_data, "GPSLongitude", "GPSLongitudeRef", ("E", "W"), source
        )

    def _coordinate(
        self,
        tag_data: Dict[str, Any],
        value_tag: str,
        ref_tag: str,
        hemispheres: Tuple[str, str],
        source: str,
    ) -> Tuple[Optional[float], Optional[str]]:
        value = self._best_effort(_parse_float, value_tag, tag_data.get(value_tag), source)
        ref = self._best_effort(_hemisphere_ref, ref_tag, tag_data.get(ref_tag), source)
        if value is None:
            return None, ref
        if ref is None:
            # Signed composite coordinate without a ref tag
            ref = hemispheres[0] if value >= 0 else hemispheres[1]
        return abs(value), ref
