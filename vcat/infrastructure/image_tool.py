import logging
from pathlib import Path
from typing import Tuple
from PIL import Image, ImageOps, UnidentifiedImageError
from vcat.domain.errors import ExternalToolFailure
from vcat.domain.models import ResizeMode

class ImageResizer:
    """Resizes an extracted frame in place with Pillow and saves it as JPEG."""

    def __init__(self, jpeg_quality: int = 90):
        self.jpeg_quality = jpeg_quality
        self.logger = logging.getLogger(__name__)

    def resize(self, image_path: Path, width: int, height: int, mode: ResizeMode) -> Tuple[int, int]:
        """Resize to the (width, height) box. Returns final (height, width)."""
        try:
            with Image.open(image_path) as img:
                img = img.convert("RGB")
                if mode == ResizeMode.FILL:
                    out = ImageOps.fit(img, (width, height), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
                else:
                    out = ImageOps.contain(img, (width, height), method=Image.Resampling.LANCZOS)
            out.save(image_path, format="JPEG", quality=self.jpeg_quality)
        except (OSError, UnidentifiedImageError) as e:
            raise ExternalToolFailure("image", f"cannot resize {image_path}: {e}") from e

        self.logger.debug(f"RESIZE: {image_path.name} mode={mode.value} box={width}x{height} -> {out.width}x{out.height}")
        return out.height, out.width
