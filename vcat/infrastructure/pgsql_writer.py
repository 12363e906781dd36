"""PostgreSQL import script for one processed category.

The script relies on `currval('video.category_id_seq')`, so it must be run in
a single session, top to bottom: the category insert comes first, every later
statement refers back to it.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, TextIO
from vcat.domain.models import CategoryInfo, RenditionInfo, VideoMetadata

CURRENT_CATEGORY_ID = "(SELECT currval('video.category_id_seq'))"


def sql_string(value: Optional[str]) -> str:
    if value is None:
        return "NULL"
    return "'" + str(value).replace("'", "''") + "'"


def sql_number(value: Any) -> str:
    if value is None:
        return "NULL"
    return str(value)


def sql_timestamp(value: Optional[datetime]) -> str:
    """`'YYYY-MM-DD HH:MM:SS'` plus the UTC offset when the value carries one."""
    if value is None:
        return "NULL"
    return sql_string(value.isoformat(sep=" ", timespec="seconds"))


def _rendition_values(info: RenditionInfo) -> List[str]:
    return [sql_number(info.height), sql_number(info.width), sql_string(info.path), sql_number(info.size)]


class PgSqlResultWriter:
    """Serializes a category and its successful video records as SQL."""

    VIDEO_COLUMNS = (
        "category_id, "
        "thumb_height, thumb_width, thumb_path, thumb_size, "
        "thumb_sq_height, thumb_sq_width, thumb_sq_path, thumb_sq_size, "
        "full_height, full_width, full_path, full_size, "
        "scaled_height, scaled_width, scaled_path, scaled_size, "
        "raw_height, raw_width, raw_path, raw_size, "
        "duration, create_date, "
        "gps_latitude, gps_latitude_ref_id, gps_longitude, gps_longitude_ref_id"
    )

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def write_output(self, output_file: Path, category: CategoryInfo, videos: Iterable[VideoMetadata]) -> int:
        """Writes the script and returns the number of video rows.

        Raises FileExistsError when output_file already exists.
        """
        videos = list(videos)
        teaser = next((v for v in videos if v.is_teaser), videos[0] if videos else None)

        # "x" refuses to overwrite a script from an earlier run
        with open(output_file, "x", encoding="utf-8") as f:
            self._write_category(f, category)
            f.write("\n")
            for video in videos:
                f.write(self._video_insert(video) + "\n")
                if video is teaser:
                    f.write("\n" + self._teaser_update(video) + "\n\n")
            f.write("\n")
            f.write(self._totals_update() + "\n")

        self.logger.info(f"SQL_WRITTEN: {output_file} (category={category.name!r}, videos={len(videos)})")
        return len(videos)

    def _write_category(self, f: TextIO, category: CategoryInfo):
        f.write(f"INSERT INTO video.category (name, year) VALUES ({sql_string(category.name)}, {category.year});\n")
        for role in category.allowed_roles:
            f.write(
                "INSERT INTO video.category_role (category_id, role_id) VALUES ("
                f"{CURRENT_CATEGORY_ID}, "
                f"(SELECT id FROM maw.role WHERE name = {sql_string(role)}));\n"
            )

    def _video_insert(self, video: VideoMetadata) -> str:
        values = [CURRENT_CATEGORY_ID]
        for info in (video.thumbnail, video.thumbnail_sq, video.full, video.scaled, video.raw):
            values.extend(_rendition_values(info))
        values.extend([
            sql_number(video.duration),
            sql_timestamp(video.creation_time),
            sql_number(video.latitude),
            sql_string(video.latitude_ref),
            sql_number(video.longitude),
            sql_string(video.longitude_ref),
        ])
        return f"INSERT INTO video.video ({self.VIDEO_COLUMNS}) VALUES ({', '.join(values)});"

    def _teaser_update(self, video: VideoMetadata) -> str:
        thumb, thumb_sq = video.thumbnail, video.thumbnail_sq
        return (
            "UPDATE video.category"
            f"   SET teaser_image_path = {sql_string(thumb.path)},"
            f"       teaser_image_height = {sql_number(thumb.height)},"
            f"       teaser_image_width = {sql_number(thumb.width)},"
            f"       teaser_image_size = {sql_number(thumb.size)},"
            f"       teaser_image_sq_path = {sql_string(thumb_sq.path)},"
            f"       teaser_image_sq_height = {sql_number(thumb_sq.height)},"
            f"       teaser_image_sq_width = {sql_number(thumb_sq.width)},"
            f"       teaser_image_sq_size = {sql_number(thumb_sq.size)}"
            f" WHERE id = {CURRENT_CATEGORY_ID};"
        )

    def _totals_update(self) -> str:
        def first_non_null(column: str, guard: str) -> str:
            return (
                f"(SELECT {column} FROM video.video WHERE id = "
                f"(SELECT MIN(id) FROM video.video WHERE category_id = c.id AND {guard} IS NOT NULL))"
            )

        def total(column: str) -> str:
            return f"(SELECT SUM({column}) FROM video.video WHERE category_id = c.id)"

        assignments = [
            "video_count = (SELECT COUNT(1) FROM video.video WHERE category_id = c.id)",
            f"create_date = {first_non_null('create_date', 'create_date')}",
            f"gps_latitude = {first_non_null('gps_latitude', 'gps_latitude')}",
            f"gps_latitude_ref_id = {first_non_null('gps_latitude_ref_id', 'gps_latitude')}",
            f"gps_longitude = {first_non_null('gps_longitude', 'gps_latitude')}",
            f"gps_longitude_ref_id = {first_non_null('gps_longitude_ref_id', 'gps_latitude')}",
            f"total_duration = {total('duration')}",
            f"total_size_thumb = {total('thumb_size')}",
            f"total_size_thumb_sq = {total('thumb_sq_size')}",
            f"total_size_scaled = {total('scaled_size')}",
            f"total_size_full = {total('full_size')}",
            f"total_size_raw = {total('raw_size')}",
        ]
        return (
            "UPDATE video.category c"
            "   SET " + ", ".join(assignments) +
            f" WHERE id = {CURRENT_CATEGORY_ID};"
        )
