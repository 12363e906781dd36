import logging
from pathlib import Path
from typing import Iterable

class HousekeepingService:
    """Prepares rendition directories and removes stale temp files."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def prepare_directories(self, video_dir: Path, subdirs: Iterable[str]):
        """Creates one subdirectory per rendition under the video directory."""
        for name in subdirs:
            (video_dir / name).mkdir(parents=True, exist_ok=True)

    def cleanup_temp_files(self, video_dir: Path, subdirs: Iterable[str]) -> int:
        """Removes .tmp leftovers of interrupted conversions. Returns count removed."""
        removed = 0
        for name in subdirs:
            directory = video_dir / name
            if not directory.is_dir():
                continue
            for tmp_file in directory.glob("*.tmp"):
                try:
                    tmp_file.unlink()
                    removed += 1
                except OSError as e:
                    self.logger.warning(f"Cannot remove temp file {tmp_file}: {e}")
        if removed:
            self.logger.info(f"Removed {removed} stale temp file(s) from {video_dir}")
        return removed
