import pytest
from pathlib import Path
from pydantic import ValidationError
from vcat.domain.errors import ExternalToolFailure, FieldParseError, VcatError
from vcat.domain.models import CategoryInfo, JobStatus, RenditionJob, VideoMetadata

def test_video_metadata_defaults():
    meta = VideoMetadata()
    assert meta.rotation == 0
    assert meta.duration is None
    assert meta.is_teaser is False
    assert meta.dimensions_swapped is False
    assert meta.raw.width is None

def test_rendition_groups_are_independent():
    a = VideoMetadata()
    b = VideoMetadata()
    a.full.size = 10
    assert b.full.size is None

def test_rendition_job_status_flow():
    job = RenditionJob(index=0, source_path=Path("clip.mp4"))
    assert job.status == JobStatus.QUEUED

    for status in (JobStatus.METADATA_EXTRACTED, JobStatus.RENDITIONS_GENERATED,
                   JobStatus.TAGS_RECONCILED, JobStatus.DONE):
        job.status = status
    assert job.status == JobStatus.DONE

def test_category_info_is_frozen():
    category = CategoryInfo(name="Trip", year=2023, allowed_roles=("admin",))
    with pytest.raises(ValidationError):
        category.name = "Other"

@pytest.mark.parametrize("name,year", [("", 2023), ("Trip", 0)])
def test_category_info_validation(name, year):
    with pytest.raises(ValidationError):
        CategoryInfo(name=name, year=year)

def test_error_messages():
    err = FieldParseError("width", "abc")
    assert str(err) == "Cannot parse width='abc'"
    assert isinstance(err, ValueError)

    failure = ExternalToolFailure("ffmpeg", "boom", returncode=2, stderr="tail")
    assert str(failure) == "ffmpeg failed: boom"
    assert isinstance(failure, VcatError)
    assert failure.returncode == 2
