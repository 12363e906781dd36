"""Error taxonomy for the rendition pipeline.

ConfigurationError aborts the run before any file is touched. MissingVideoStream
and ExternalToolFailure are fatal for a single file and end up in that file's
result slot. FieldParseError never escapes the reconciler.
"""

from typing import Optional


class VcatError(Exception):
    """Base class for all vcat errors."""


class ConfigurationError(VcatError):
    """Invalid run parameters, missing source directory or pre-existing output."""


class MissingVideoStream(VcatError, ValueError):
    """Probe data contains no video stream."""


class FieldParseError(VcatError, ValueError):
    """A single probe/tag field could not be parsed."""

    def __init__(self, field: str, value: object):
        super().__init__(f"Cannot parse {field}={value!r}")
        self.field = field
        self.value = value


class InvalidDimensions(VcatError, ValueError):
    """Scaling was requested with non-positive dimensions."""


class ExternalToolFailure(VcatError, RuntimeError):
    """An external tool (ffmpeg, ffprobe, exiftool, image engine) failed."""

    def __init__(self, tool: str, message: str, returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(f"{tool} failed: {message}")
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
