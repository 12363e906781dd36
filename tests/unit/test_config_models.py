import pytest
from unittest.mock import patch
from pydantic import ValidationError
from vcat.config.models import AppConfig, GeneralConfig, RenditionConfig, resolve_worker_count

def test_valid_config():
    data = {
        "general": {
            "threads": 4,
            "extensions": ["MP4", ".mov"],
            "web_root": "/media/movies/",
            "teaser_selection": "first_completed",
        },
        "renditions": {
            "codec": "webm",
            "full_min_dimension": 720,
        }
    }
    config = AppConfig(**data)
    assert config.general.threads == 4
    assert config.general.extensions == [".mp4", ".mov"]
    assert config.general.web_root == "/media/movies"
    assert config.renditions.codec == "webm"
    assert config.renditions.full_min_dimension == 720

def test_config_defaults():
    config = AppConfig()
    assert config.general.threads is None
    assert ".flv" in config.general.extensions
    assert config.general.web_root == "/movies"
    assert config.general.default_roles == ["admin", "friend"]
    assert config.general.private_roles == ["admin"]
    assert config.general.teaser_selection == "input_order"
    assert config.tools.ffmpeg_path == "ffmpeg"
    assert config.tools.exiftool_path is None
    assert config.renditions.codec == "h264"
    assert (config.renditions.thumb_width, config.renditions.thumb_height) == (240, 160)
    assert (config.renditions.thumb_sq_width, config.renditions.thumb_sq_height) == (160, 120)
    assert config.renditions.thumbnail_seconds == 2.0

def test_invalid_threads():
    with pytest.raises(ValidationError):
        GeneralConfig(threads=0)

def test_invalid_teaser_policy():
    with pytest.raises(ValidationError):
        GeneralConfig(teaser_selection="random")

def test_relative_web_root_rejected():
    with pytest.raises(ValidationError):
        GeneralConfig(web_root="movies")

def test_unknown_codec_rejected():
    with pytest.raises(ValidationError):
        RenditionConfig(codec="av1")

@pytest.mark.parametrize("value", [0, -2, 481])
def test_min_dimension_must_be_positive_and_even(value):
    with pytest.raises(ValidationError):
        RenditionConfig(full_min_dimension=value)

def test_resolve_worker_count():
    assert resolve_worker_count(6) == 6
    with patch("os.cpu_count", return_value=8):
        assert resolve_worker_count(None) == 7
    with patch("os.cpu_count", return_value=1):
        assert resolve_worker_count(None) == 1
    with patch("os.cpu_count", return_value=None):
        assert resolve_worker_count(None) == 1
