import subprocess
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple
from vcat.domain.errors import ExternalToolFailure

STDERR_TAIL_LINES = 20

@dataclass(frozen=True)
class CodecProfile:
    """Output codec variant. The set is closed; see CODEC_PROFILES."""

    name: str
    extension: str
    container: str
    video_args: Tuple[str, ...]
    audio_args: Tuple[str, ...]

CODEC_PROFILES: Dict[str, CodecProfile] = {
    "h264": CodecProfile(
        name="h264",
        extension=".mp4",
        container="mp4",
        video_args=("-c:v", "libx264", "-preset", "slow", "-crf", "20", "-pix_fmt", "yuv420p"),
        audio_args=("-c:a", "aac", "-movflags", "+faststart"),
    ),
    "webm": CodecProfile(
        name="webm",
        extension=".webm",
        container="webm",
        video_args=("-c:v", "libvpx", "-b:v", "0", "-crf", "10"),
        audio_args=("-c:a", "libvorbis", "-q:a", "5"),
    ),
}

def get_codec_profile(name: str) -> CodecProfile:
    try:
        return CODEC_PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown codec profile: {name}. Use one of {sorted(CODEC_PROFILES)}") from None

def _stderr_tail(stderr: str) -> str:
    return "\n".join((stderr or "").strip().splitlines()[-STDERR_TAIL_LINES:])

class FFmpegAdapter:
    """Wrapper around ffmpeg for rendition transcoding and frame extraction."""

    def __init__(self, profile: CodecProfile, ffmpeg_path: str = "ffmpeg", debug: bool = False):
        self.profile = profile
        self.ffmpeg_path = ffmpeg_path
        self.debug = debug
        self.logger = logging.getLogger(__name__)

    def _build_convert_command(self, input_path: Path, tmp_path: Path, width: int, height: int) -> List[str]:
        """Constructs the ffmpeg command line for a scaled conversion."""
        cmd = [
            self.ffmpeg_path,
            "-y",  # Overwrite output files
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(input_path),
        ]
        cmd.extend(self.profile.video_args)
        cmd.extend(["-vf", f"scale={width}:{height}"])
        cmd.extend(self.profile.audio_args)
        # Force container since the .tmp extension doesn't indicate format
        cmd.extend(["-f", self.profile.container, str(tmp_path)])
        return cmd

    def _build_frame_command(self, input_path: Path, output_path: Path, seconds: float) -> List[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-ss", f"{seconds:.3f}",
            "-i", str(input_path),
            "-frames:v", "1",
            "-q:v", "2",
            str(output_path),
        ]

    def _run(self, cmd: List[str], label: str, filename: str) -> None:
        start_time = time.monotonic()
        if self.debug:
            self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")
        self.logger.info(f"FFMPEG_START: {filename} ({label})")

        result = subprocess.run(cmd, capture_output=True, text=True)

        elapsed = time.monotonic() - start_time
        if result.returncode != 0:
            self.logger.info(f"FFMPEG_END: {filename} ({label}) status=failed code={result.returncode} elapsed={elapsed:.2f}s")
            raise ExternalToolFailure(
                "ffmpeg",
                f"{label} of {filename} exited with code {result.returncode}",
                returncode=result.returncode,
                stderr=_stderr_tail(result.stderr),
            )
        self.logger.info(f"FFMPEG_END: {filename} ({label}) status=completed elapsed={elapsed:.2f}s")

    def convert(self, input_path: Path, output_path: Path, width: int, height: int) -> None:
        """Transcodes input to output at width x height using the codec profile.

        Writes to a .tmp sibling first and renames on success so an interrupted
        conversion never leaves a plausible-looking output behind.
        """
        tmp_path = output_path.with_suffix('.tmp')
        cmd = self._build_convert_command(input_path, tmp_path, width, height)
        try:
            self._run(cmd, f"convert {width}x{height}", output_path.name)
        except ExternalToolFailure:
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        tmp_path.rename(output_path)

    def extract_frame(self, input_path: Path, output_path: Path, seconds: float) -> None:
        """Pulls a single frame at `seconds` into an image file."""
        cmd = self._build_frame_command(input_path, output_path, seconds)
        self._run(cmd, f"frame@{seconds:g}s", output_path.name)
        if not output_path.exists():
            raise ExternalToolFailure("ffmpeg", f"no frame written to {output_path}")
