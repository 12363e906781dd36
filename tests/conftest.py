import pytest
import yaml
from pathlib import Path
from vcat.config.models import AppConfig
from vcat.infrastructure.event_bus import EventBus

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={
            "threads": 4,
            "extensions": [".mp4", ".mov", ".avi"],
            "web_root": "/movies",
            "default_roles": ["admin", "friend"],
            "private_roles": ["admin"],
            "teaser_selection": "input_order",
            "debug": False,
        },
        renditions={
            "codec": "h264",
            "full_min_dimension": 480,
            "scaled_min_dimension": 240,
        },
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "vcat.yaml"

    content = {
        'general': {
            'threads': 2,
            'extensions': ['mp4', 'MOV'],
            'web_root': '/media/movies/',
            'default_roles': ['admin', 'friend'],
            'private_roles': ['admin'],
            'teaser_selection': 'first_completed',
            'debug': False,
        },
        'tools': {
            'ffmpeg_path': '/opt/ffmpeg/bin/ffmpeg',
        },
        'renditions': {
            'codec': 'webm',
            'full_min_dimension': 720,
        }
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

# ============================================================================
# Probe Data Fixtures
# ============================================================================

def build_probe_data(width=1920, height=1080, rotate=None, duration="12.5", audio=True,
                    creation_time="2023-06-01T10:20:30.000000Z"):
    """Builds an ffprobe-style JSON document for one video (+ optional audio) stream."""
    video = {
        "index": 0,
        "codec_name": "h264",
        "codec_type": "video",
        "width": width,
        "height": height,
        "r_frame_rate": "30000/1001",
        "nb_frames": "375",
        "tags": {},
    }
    if duration is not None:
        video["duration"] = duration
    if rotate is not None:
        video["tags"]["rotate"] = str(rotate)
    if creation_time is not None:
        video["tags"]["creation_time"] = creation_time

    streams = [video]
    if audio:
        streams.append({
            "index": 1,
            "codec_name": "aac",
            "codec_type": "audio",
            "sample_rate": "48000",
            "channels": 2,
        })
    return {"streams": streams, "format": {"filename": "input.mp4"}}

@pytest.fixture
def make_probe_data():
    """Returns the ffprobe JSON builder."""
    return build_probe_data

# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def video_dir(tmp_path):
    """Creates a category directory named like a real one."""
    directory = tmp_path / "2023" / "summer_trip"
    directory.mkdir(parents=True)
    return directory

@pytest.fixture
def dummy_video_files(video_dir):
    """Creates dummy source video files (not real videos)."""
    files = []
    for name in ["clip_a.mp4", "clip_b.mov", "clip_c.avi"]:
        path = video_dir / name
        path.write_bytes(b"\x00" * 2048)
        files.append(path)
    return files

# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: pipeline tests with fake collaborators"
    )
