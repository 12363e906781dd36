import typer
import warnings
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError

# pyexiftool warns on stderr, which garbles the rich console output
warnings.filterwarnings("ignore")
from vcat.config.loader import load_config
from vcat.config.models import AppConfig
from vcat.config.overrides import CliConfigOverrides, resolve_roles
from vcat.domain.errors import ConfigurationError
from vcat.domain.models import CategoryInfo, VideoMetadata
from vcat.infrastructure.event_bus import EventBus
from vcat.infrastructure.exif_tool import ExifToolAdapter
from vcat.infrastructure.ffmpeg import FFmpegAdapter, get_codec_profile
from vcat.infrastructure.ffprobe import FFprobeAdapter
from vcat.infrastructure.file_scanner import FileScanner
from vcat.infrastructure.housekeeping import HousekeepingService
from vcat.infrastructure.image_tool import ImageResizer
from vcat.infrastructure.logging import LOG_FILE_NAME, setup_logging
from vcat.infrastructure.pgsql_writer import PgSqlResultWriter
from vcat.pipeline.orchestrator import Orchestrator
from vcat.pipeline.planner import RENDITION_DIRS, RenditionPlanner
from vcat.ui.reporter import ConsoleReporter

DEFAULT_CONFIG_PATH = Path("conf/vcat.yaml")

app = typer.Typer(help="vcat - convert a directory of videos into web renditions plus a SQL import script")


def validate_options(
    video_dir: Optional[Path],
    category: Optional[str],
    year: Optional[int],
    output: Optional[Path],
) -> List[str]:
    """Collects every problem with the run options instead of stopping at the first."""
    errors = []
    if not category or not category.strip():
        errors.append("Please specify the category name (--category).")
    if year is None:
        errors.append("Please specify the year (--year).")
    elif year <= 0:
        errors.append(f"Year must be a positive number, got {year}.")
    if output is None:
        errors.append("Please specify the output SQL file (--output).")
    elif output.exists():
        errors.append(f"Output file already exists: {output}")
    if video_dir is None:
        errors.append("Please specify the video directory.")
    elif not video_dir.is_dir():
        errors.append(f"Video directory does not exist: {video_dir}")
    return errors


def resolve_config(config_path: Optional[Path], overrides: CliConfigOverrides) -> AppConfig:
    """Loads YAML config (the default path is optional) and applies CLI overrides."""
    try:
        if config_path is not None:
            config = load_config(config_path)
        elif DEFAULT_CONFIG_PATH.exists():
            config = load_config(DEFAULT_CONFIG_PATH)
        else:
            config = AppConfig()
        return overrides.apply(config)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@app.command()
def convert(
    video_dir: Optional[Path] = typer.Argument(None, help="Directory containing the source videos"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="SQL file to write (must not exist)"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Category year"),
    private: bool = typer.Option(False, "--private", "-x", help="Restrict the category to the private roles"),
    roles: Optional[List[str]] = typer.Option(None, "--role", "-r", help="Allowed role (repeatable)"),
    web_root: Optional[str] = typer.Option(None, "--web-root", "-w", help="URL root for rendition paths"),
    codec: Optional[str] = typer.Option(None, "--codec", help="Output codec profile (h264, webm)"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", help="Override number of worker threads"),
    config_path: Optional[Path] = typer.Option(None, "--config", help=f"Path to YAML config (default {DEFAULT_CONFIG_PATH})"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (overrides config)"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert every video in VIDEO_DIR into full, scaled and thumbnail renditions."""
    exif = None
    try:
        errors = validate_options(video_dir, category, year, output)
        if errors:
            raise ConfigurationError("\n".join(errors))

        overrides = CliConfigOverrides(
            threads=threads,
            web_root=web_root,
            codec=codec,
            log_path=str(log_path) if log_path else None,
            debug=debug,
        )
        config = resolve_config(config_path, overrides)
        category_info = CategoryInfo(
            name=category.strip(),
            year=year,
            allowed_roles=tuple(resolve_roles(config, roles, private)),
        )

        log_file = Path(config.general.log_path) if config.general.log_path else None
        logger = setup_logging(output.resolve().parent, debug=config.general.debug, log_path=log_file)
        logger.info(
            f"Run: dir={video_dir} category={category_info.name!r} year={category_info.year} "
            f"roles={list(category_info.allowed_roles)} codec={config.renditions.codec}"
        )

        housekeeping = HousekeepingService()
        files = FileScanner(config.general.extensions).scan(video_dir)
        if not files:
            raise ConfigurationError(f"No source videos found in {video_dir}")

        subdirs = list(RENDITION_DIRS.values())
        housekeeping.cleanup_temp_files(video_dir, subdirs)
        housekeeping.prepare_directories(video_dir, subdirs)

        profile = get_codec_profile(config.renditions.codec)
        bus = EventBus()
        reporter = ConsoleReporter(bus)
        exif = ExifToolAdapter(config.tools.exiftool_path)
        planner = RenditionPlanner(
            video_dir=video_dir,
            web_root=config.general.web_root,
            year=category_info.year,
            config=config.renditions,
            video_extension=profile.extension,
        )
        orchestrator = Orchestrator(
            config=config,
            event_bus=bus,
            ffprobe_adapter=FFprobeAdapter(config.tools.ffprobe_path),
            ffmpeg_adapter=FFmpegAdapter(profile, config.tools.ffmpeg_path, debug=config.general.debug),
            exif_adapter=exif,
            image_resizer=ImageResizer(config.renditions.jpeg_quality),
            planner=planner,
        )

        results = orchestrator.run(files)
        reporter.print_summary(files, results)

        videos = [r for r in results if isinstance(r, VideoMetadata)]
        PgSqlResultWriter().write_output(output, category_info, videos)
        typer.secho(f"SQL written to {output} ({len(videos)} video(s))", fg=typer.colors.GREEN)

        failed = len(results) - len(videos)
        if failed:
            typer.secho(f"{failed} file(s) failed, see {log_file or output.resolve().parent / LOG_FILE_NAME}",
                        fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)

    except ConfigurationError as e:
        for line in str(e).splitlines():
            typer.secho(f"Error: {line}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except KeyboardInterrupt:
        typer.secho("\nConversion stopped by user (Ctrl+C)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=130)

    except typer.Exit:
        raise

    except Exception as e:
        with open("error.log", "a") as f:
            import traceback
            traceback.print_exc(file=f)
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    finally:
        if exif is not None:
            exif.close()


if __name__ == "__main__":
    app()
