import exiftool
import logging
import threading
from pathlib import Path
from typing import Optional, List, Dict, Any
from vcat.domain.errors import ExternalToolFailure

# Recognized tag name -> aliases, most specific group first
TAG_ALIASES: Dict[str, List[str]] = {
    "CreateDate": [
        "QuickTime:CreateDate",
        "EXIF:CreateDate",
        "XMP:CreateDate",
        "QuickTime:CreationDate",
        "EXIF:DateTimeOriginal",
        "CreateDate",
    ],
    "GPSLatitude": ["EXIF:GPSLatitude", "XMP:GPSLatitude", "Composite:GPSLatitude", "GPSLatitude"],
    "GPSLatitudeRef": ["EXIF:GPSLatitudeRef", "XMP:GPSLatitudeRef", "Composite:GPSLatitudeRef", "GPSLatitudeRef"],
    "GPSLongitude": ["EXIF:GPSLongitude", "XMP:GPSLongitude", "Composite:GPSLongitude", "GPSLongitude"],
    "GPSLongitudeRef": ["EXIF:GPSLongitudeRef", "XMP:GPSLongitudeRef", "Composite:GPSLongitudeRef", "GPSLongitudeRef"],
    "Rotation": ["QuickTime:Rotation", "Composite:Rotation", "Rotation"],
}

class ExifToolAdapter:
    """Wrapper around pyexiftool for embedded tag extraction.

    One ExifTool process is shared by all workers; calls are serialized.
    """

    def __init__(self, executable: Optional[str] = None):
        if executable:
            self.et = exiftool.ExifTool(executable=executable)
        else:
            self.et = exiftool.ExifTool()
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def _get_tag(self, data: Dict[str, Any], tags: List[str]) -> Optional[Any]:
        """Tries to find the first available tag from a list of aliases."""
        for tag in tags:
            if tag in data and data[tag] not in (None, ""):
                return data[tag]
        return None

    def extract_tags(self, file_path: Path) -> Dict[str, Any]:
        """Raw ExifTool tags (numeric -n output) for a single file."""
        with self._lock:
            if not self.et.running:
                self.et.run()
            try:
                metadata_list = self.et.execute_json("-n", str(file_path))
            except Exception as e:
                raise ExternalToolFailure("exiftool", f"cannot read tags of {file_path}: {e}") from e
        if not metadata_list:
            raise ExternalToolFailure("exiftool", f"no tags returned for {file_path}")
        return metadata_list[0]

    def read_tags(self, file_path: Path) -> Dict[str, Any]:
        """Tags normalized to the recognized names; absent tags are omitted."""
        data = self.extract_tags(file_path)
        tags = {}
        for name, aliases in TAG_ALIASES.items():
            value = self._get_tag(data, aliases)
            if value is not None:
                tags[name] = value
        self.logger.debug(f"EXIF_TAGS: {file_path.name} {tags}")
        return tags

    def close(self):
        with self._lock:
            if self.et.running:
                self.et.terminate()
