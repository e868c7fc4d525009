"""Main application entry point for LiveScribe."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .config import LiveScribeConfig

logger = logging.getLogger(__name__)
console = Console()


def setup_logging(config: LiveScribeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/livescribe.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    for noisy in ("aiohttp.access", "faster_whisper"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("=" * 50)
    logger.info("LiveScribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def _api_client(config: LiveScribeConfig):
    from .client.api_client import TranscriptionApiClient
    return TranscriptionApiClient(
        config.get('client.base_url', 'http://127.0.0.1:5080'),
        timeout_seconds=config.get('client.timeout_seconds', 300),
    )


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to configuration YAML file (default: built-in defaults)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default=None, help="Override logging.level from the config file")
@click.version_option("0.1.0", prog_name="LiveScribe")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """LiveScribe - chunked live transcription."""
    config = LiveScribeConfig(config_path)
    setup_logging(config, log_level or config.get('logging.level', 'INFO'))
    ctx.obj = config


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides server.host)")
@click.option("--port", type=int, default=None, help="Port (overrides server.port)")
@click.pass_obj
def serve(config: LiveScribeConfig, host: Optional[str], port: Optional[int]) -> None:
    """Run the ingest server."""
    from .audio.normalizer import AudioNormalizer
    from .server import run_server
    from .services.ingest_gateway import IngestGateway
    from .services.metrics_recorder import MetricsRecorder
    from .transcription import create_backend

    temp_dir = config.get_temp_directory()
    backend = create_backend(config)
    gateway = IngestGateway(
        backend=backend,
        recorder=MetricsRecorder(config.get('metrics.log_path')),
        normalizer=AudioNormalizer(
            ffmpeg_path=config.get('transcoder.ffmpeg_path', 'ffmpeg'),
            sample_rate=config.get('transcoder.sample_rate', 16000),
            temp_dir=temp_dir,
        ),
        temp_dir=temp_dir,
    )
    host = host or config.get('server.host', '127.0.0.1')
    port = port or config.get('server.port', 5080)
    console.print(f"✅ Serving {backend.model_name} on http://{host}:{port}", style="green")
    try:
        run_server(gateway, host, port)
    finally:
        backend.cleanup()


@cli.command()
@click.option("--duration", type=float, default=None, help="Stop after N seconds (default: until Ctrl+C)")
@click.pass_obj
def live(config: LiveScribeConfig, duration: Optional[float]) -> None:
    """Record from the microphone and transcribe in 2-second chunks."""
    from .audio.capture import AudioDevice
    from .services.capture_scheduler import SessionCaptureScheduler
    from .ui.live_screen import LiveTranscriptionScreen

    device = AudioDevice(
        sample_rate=config.get('audio.sample_rate', 16000),
        channels=config.get('audio.channels', 1),
        frames_per_buffer=config.get('audio.frames_per_buffer', 1024),
    )
    scheduler = SessionCaptureScheduler(
        device,
        _api_client(config),
        upload_workers=config.get('client.upload_workers', 4),
    )
    try:
        transcript = LiveTranscriptionScreen(scheduler, console).run(duration)
    finally:
        scheduler.shutdown()
    if transcript:
        console.print(transcript)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def transcribe(config: LiveScribeConfig, file: str) -> None:
    """Upload FILE for whole-file transcription."""
    result = asyncio.run(_api_client(config).transcribe_file(file))
    if not result.is_success:
        console.print(f"❌ {result.error_message}", style="bold red")
        sys.exit(1)
    if not result.data.results:
        console.print("[No speech detected]", style="dim")
    for line in result.data.results:
        console.print(line)


@cli.command()
@click.option("--sort", "sort_column", default="timestamp", show_default=True,
              help="Column to sort by, e.g. totalTimeMs")
@click.option("--descending", is_flag=True, help="Sort descending")
@click.option("--clear", is_flag=True, help="Clear the metrics log instead of showing it")
@click.pass_obj
def metrics(config: LiveScribeConfig, sort_column: str, descending: bool, clear: bool) -> None:
    """Show per-session transcription metrics."""
    from .services.session_aggregator import SessionAggregator
    from .ui.metrics_table import build_metrics_table

    client = _api_client(config)
    if clear:
        result = asyncio.run(client.clear_metrics())
        if result.is_success and result.data:
            console.print("✅ Metrics cleared", style="green")
            return
        console.print(f"❌ Failed to clear metrics: {result.error_message or 'server refused'}", style="bold red")
        sys.exit(1)

    result = asyncio.run(client.get_metrics())
    if not result.is_success:
        console.print(f"❌ {result.error_message}", style="bold red")
        sys.exit(1)

    aggregator = SessionAggregator()
    summaries = aggregator.sort(aggregator.aggregate(result.data), sort_column, ascending=not descending)
    console.print(build_metrics_table(summaries))


def main() -> None:
    """Main entry point for LiveScribe."""
    try:
        cli()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
