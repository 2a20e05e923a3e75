"""
Eel Tracking System - CLI

Usage:
    eeltrack process <video_path> [options]
    python main.py process <video_path> [options]
"""

from importlib import resources
import click
from pathlib import Path
import yaml

from eeltrack.errors import EelTrackingError


__version__ = "0.1.0"


def load_default_config() -> dict:
    """Load the default config shipped inside the package."""
    text = (resources.files("eeltrack") / "config" / "default.yaml").read_text(encoding="utf8")
    return yaml.safe_load(text)


def load_config(config_path: Path | None) -> dict:
    """Load configuration file, optionally merged with a custom config."""
    config = load_default_config()

    # Load custom config if specified
    if config_path:
        with open(config_path) as f:
            custom_config = yaml.safe_load(f) or {}
            config = deep_merge(config, custom_config)

    return config


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@click.group()
@click.version_option(version=__version__)
def cli():
    """Eel Tracking System - Detect and count eels in underwater video."""
    pass


@cli.command()
@click.argument("video_path", type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), help="Custom config file")
@click.option("--output", "-o", type=click.Path(), help="Output directory")
@click.option("--start-frame", type=int, default=0, help="Start processing from frame N")
@click.option("--end-frame", type=int, default=None, help="Stop processing at frame N")
@click.option("--display", is_flag=True, help="Show annotated frames while processing (ESC to stop)")
def process(video_path, config, output, start_frame, end_frame, display):
    """Process an underwater video and report confirmed eels.

    VIDEO_PATH: Path to the input video file (MP4, etc.)
    """
    from eeltrack.pipeline import Pipeline

    if start_frame < 0:
        raise click.BadParameter("must be >= 0", param_hint="--start-frame")
    if end_frame is not None and end_frame <= start_frame:
        raise click.BadParameter(
            f"must be greater than --start-frame ({start_frame})", param_hint="--end-frame"
        )

    config_dict = load_config(Path(config) if config else None)

    if output:
        output_dir = Path(output)
    else:
        output_dir = Path(video_path).parent / f"{Path(video_path).stem}_output"

    output_dir.mkdir(parents=True, exist_ok=True)

    click.echo(f"Processing: {video_path}")
    click.echo(f"Output directory: {output_dir}")

    pipeline = Pipeline(config_dict, output_dir, display=display)
    try:
        run_data = pipeline.run(
            video_path=Path(video_path),
            start_frame=start_frame,
            end_frame=end_frame,
        )
    except EelTrackingError as e:
        err = click.ClickException(str(e))
        err.exit_code = e.exit_code
        raise err

    click.echo(f"Processing complete! {run_data.eel_count} eel(s) confirmed.")


@cli.command()
@click.argument("video_path", type=click.Path(exists=True))
def info(video_path):
    """Show video metadata."""
    from eeltrack.utils.video_io import get_video_info

    try:
        video_info = get_video_info(video_path)
    except EelTrackingError as e:
        err = click.ClickException(str(e))
        err.exit_code = e.exit_code
        raise err

    click.echo(f"Eel Tracking System v{__version__}")
    click.echo("-" * 40)
    for key, value in video_info.items():
        click.echo(f"{key}: {value}")
