"""Main application entry point for Dictate2Me."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .config import Dictate2MeConfig
from .correction import CorrectionLexicon, apply_corrections
from .services.dictation_service import DictationService
from .ui.console_view import ConsoleView

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = Dictate2MeConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.view = ConsoleView()
        self.service: Optional[DictationService] = None

    def init(self):
        # Initialize services
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_duration = self.config.get('audio.chunk_duration_seconds', 4.0)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_duration}s chunks")

        self.service = DictationService(self.config)
        self.service.load_model()

    def run(self, duration: int, refine: bool = True) -> int:
        """Record for ``duration`` seconds, then print transcript and correction."""
        try:
            result = self.service.start_recording()
            if not result["success"]:
                self.view.print_error(result.get("message", result["error"]))
                return 1

            self.view.console.print(f"🔴 Recording for {duration}s...", style="bold red")
            time.sleep(duration)
            self.service.stop_recording()

            self.view.console.print("📝 Processing final transcriptions...", style="blue")
            self.service.wait_for_transcription()

            status = self.service.get_status()
            self.view.print_status(status)
            self.view.print_transcript(status.transcription)
            if refine:
                correction = self.service.refine()
                if correction is not None:
                    self.view.print_correction(correction)
            return 0
        finally:
            self.cleanup()

    def cleanup(self):
        if self.service:
            self.service.cleanup()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'logs/dictate2me.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
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
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("Dictate2Me application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def correct_text(text: str, config_path: Optional[str] = None, view: Optional[ConsoleView] = None) -> int:
    """Run only the correction pass over ``text`` and print the result."""
    config = Dictate2MeConfig(config_path)
    lexicon = CorrectionLexicon.from_config(config.get('correction'))
    view = view or ConsoleView()
    view.print_correction(apply_corrections(text, lexicon))
    return 0


def main() -> None:
    """Main entry point for Dictate2Me application."""
    parser = argparse.ArgumentParser(
        description="Dictate2Me - Chunked voice dictation with rule-based correction",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=10,
        help="Recording duration in seconds (default: 10)"
    )

    parser.add_argument(
        "--no-refine",
        action="store_true",
        help="Print the raw transcript without running the correction pass"
    )

    parser.add_argument(
        "--text",
        type=str,
        help="Correct the given text and exit without recording"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Dictate2Me v{__version__}"
    )

    args = parser.parse_args()

    if args.text is not None:
        sys.exit(correct_text(args.text, args.config))

    server = Server(args.config, args.log_level)
    try:
        server.init()
        sys.exit(server.run(args.duration, refine=not args.no_refine))
    except KeyboardInterrupt:
        server.cleanup()
        print("\n👋 Goodbye!")
    except (ValueError, FileNotFoundError, RuntimeError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
