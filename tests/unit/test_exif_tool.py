import pytest
from pathlib import Path
from unittest.mock import patch
from vcat.domain.errors import ExternalToolFailure
from vcat.infrastructure.exif_tool import ExifToolAdapter

def test_read_tags_normalizes_aliases():
    mock_exif_data = [{
        "SourceFile": "test.mov",
        "QuickTime:CreateDate": "2021:08:14 09:12:00",
        "Composite:GPSLatitude": -12.5,
        "Composite:GPSLongitude": 45.25,
        "EXIF:GPSLongitudeRef": "E",
        "Composite:Rotation": 90,
        "QuickTime:Model": "iPhone 12",
    }]

    with patch("exiftool.ExifTool") as MockExifTool:
        instance = MockExifTool.return_value
        instance.running = True
        instance.execute_json.return_value = mock_exif_data

        adapter = ExifToolAdapter()
        tags = adapter.read_tags(Path("test.mov"))

        assert tags == {
            "CreateDate": "2021:08:14 09:12:00",
            "GPSLatitude": -12.5,
            "GPSLongitude": 45.25,
            "GPSLongitudeRef": "E",
            "Rotation": 90,
        }
        # numeric output keeps GPS values signed decimals
        assert instance.execute_json.call_args[0] == ("-n", "test.mov")

def test_first_alias_wins():
    mock_exif_data = [{
        "QuickTime:CreateDate": "2020:01:01 00:00:00",
        "EXIF:CreateDate": "1999:01:01 00:00:00",
    }]
    with patch("exiftool.ExifTool") as MockExifTool:
        instance = MockExifTool.return_value
        instance.running = True
        instance.execute_json.return_value = mock_exif_data

        tags = ExifToolAdapter().read_tags(Path("a.mp4"))

        assert tags["CreateDate"] == "2020:01:01 00:00:00"

def test_get_tag_skips_empty_values():
    with patch("exiftool.ExifTool"):
        adapter = ExifToolAdapter()
        assert adapter._get_tag({"A": "", "B": None, "C": 7}, ["A", "B", "C"]) == 7
        assert adapter._get_tag({}, ["Missing", "AlsoMissing"]) is None

def test_read_tags_starts_exiftool_and_raises_on_empty():
    with patch("exiftool.ExifTool") as MockExifTool:
        instance = MockExifTool.return_value
        instance.running = False
        instance.execute_json.return_value = []

        adapter = ExifToolAdapter()
        with pytest.raises(ExternalToolFailure):
            adapter.read_tags(Path("test.mp4"))

        instance.run.assert_called_once()

def test_exiftool_error_is_wrapped():
    with patch("exiftool.ExifTool") as MockExifTool:
        instance = MockExifTool.return_value
        instance.running = True
        instance.execute_json.side_effect = ValueError("bad output")

        with pytest.raises(ExternalToolFailure, match="bad output"):
            ExifToolAdapter().read_tags(Path("test.mp4"))

def test_custom_executable_and_close():
    with patch("exiftool.ExifTool") as MockExifTool:
        instance = MockExifTool.return_value
        instance.running = True

        adapter = ExifToolAdapter("/opt/bin/exiftool")
        adapter.close()

        MockExifTool.assert_called_once_with(executable="/opt/bin/exiftool")
        instance.terminate.assert_called_once()
