"""Rich table for transcription metrics."""

from typing import Optional, Sequence

from rich.table import Table

from ..models.metrics import SessionSummary


def format_file_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def format_duration(seconds: Optional[float]) -> str:
    if seconds is None:
        return "-"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes)}m {secs:04.1f}s"


def build_metrics_table(summaries: Sequence[SessionSummary], title: str = "📊 Transcription Metrics") -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Time", style="cyan")
    table.add_column("Model")
    table.add_column("Type")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Audio", justify="right")
    table.add_column("Prep ms", justify="right")
    table.add_column("Transcribe ms", justify="right")
    table.add_column("Total ms", justify="right")
    table.add_column("OK", justify="center")
    table.add_column("Error / Text", overflow="fold")

    for summary in summaries:
        detail = summary.error_message or summary.transcribed_text
        table.add_row(
            summary.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            summary.model_name,
            summary.transcription_type,
            summary.file_name,
            format_file_size(summary.file_size_bytes),
            format_duration(summary.audio_duration_seconds),
            str(summary.preprocessing_time_ms),
            str(summary.transcription_time_ms),
            str(summary.total_time_ms),
            "✅" if summary.success else "❌",
            detail,
        )
    return table
