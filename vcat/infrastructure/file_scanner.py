from pathlib import Path
from typing import List

class FileScanner:
    """Lists source videos directly inside the video directory (no recursion)."""

    def __init__(self, extensions: List[str]):
        self.extensions = [(ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions]

    def scan(self, video_dir: Path) -> List[Path]:
        """Returns matching files sorted by name for a deterministic input order."""
        files = []
        for file_path in sorted(video_dir.iterdir(), key=lambda p: p.name):
            # Rendition subdirectories (raw/, full/, ...) are never sources
            if not file_path.is_file():
                continue
            if file_path.suffix.lower() not in self.extensions:
                continue
            files.append(file_path)
        return files
