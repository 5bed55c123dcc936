"""Rich console rendering of dictation status, transcripts and corrections."""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..correction import split_into_sentences
from ..models.correction import CorrectionResult
from ..models.ui import DictationStatus

logger = logging.getLogger(__name__)


class ConsoleView:
    """Prints DictationStatus snapshots and correction results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def build_status_table(self, status: DictationStatus) -> Table:
        """Build the status table for one snapshot."""
        table = Table(title="🎙️ Dictation Status", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        recording_status = "🔴 Recording" if status.is_recording else f"⏹️ {status.capture_state.value.title()}"
        table.add_row("Capture", recording_status)

        model_text = status.model_state.value
        if status.is_model_loading:
            model_text = f"{model_text} ({status.model_progress:.0f}%)"
        table.add_row("Model", model_text)
        table.add_row("Transcribing", "🔄 Yes" if status.is_transcribing else "No")
        table.add_row("Chunks", f"{status.chunks_completed}/{status.chunks_flushed} "
                                f"({status.chunks_failed} failed)")

        # Peak level visualization
        peak_bar = "█" * int(min(status.peak_level, 1.0) * 20)
        table.add_row("Peak Level", f"{peak_bar:<20} {status.peak_level:.3f}")

        if status.error:
            table.add_row("Last Error", Text(status.error, style="bold red"))
        return table

    def build_changes_table(self, result: CorrectionResult) -> Table:
        """Build a table listing every change of a correction pass."""
        table = Table(title="✨ Corrections", show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Type", style="cyan")
        table.add_column("Position", justify="right")
        table.add_column("Description", style="white")

        for index, change in enumerate(result.changes, 1):
            table.add_row(str(index), change.type.value, str(change.position), change.description)
        return table

    def print_status(self, status: DictationStatus) -> None:
        self.console.print(self.build_status_table(status))

    def print_transcript(self, text: str) -> None:
        body = Text(text, style="white") if text else Text("No speech transcribed", style="dim white italic")
        self.console.print(Panel(body, title="📝 Transcript", border_style="blue"))

    def print_correction(self, result: CorrectionResult) -> None:
        """Print corrected text sentence by sentence, then the change list."""
        sentences = split_into_sentences(result.corrected)
        if sentences:
            body = Text("\n".join(sentences), style="white")
        else:
            body = Text("Nothing to correct", style="dim white italic")
        self.console.print(Panel(body, title="✅ Corrected", border_style="green"))

        if result.changes:
            self.console.print(self.build_changes_table(result))
        else:
            self.console.print("No changes needed", style="green")

    def print_error(self, message: str) -> None:
        self.console.print(f"❌ {message}", style="bold red")
