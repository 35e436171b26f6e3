"""Main application entry point for KickCount."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from . import __version__
from .config import KickCountConfig
from .models.tally import KeywordTally
from .models.ui import DisplayState
from .services.session import RecordingSessionController
from .transcription.google_backend import GoogleStreamingBackend
from .transcription.relay import TranscriptRelay
from .ui.commentary_screen import CommentaryScreen
from .ui.dispatcher import UiDispatcher
from .ui.permissions import MicrophonePermission

logger = logging.getLogger(__name__)


def setup_logging(config: KickCountConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/kickcount.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("KickCount application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_screen(config: KickCountConfig, console: Optional[Console] = None) -> CommentaryScreen:
    """Wire config, backend, relay and controller into a ready-to-run screen."""
    console = console or Console()
    display = DisplayState()
    tally = KeywordTally(keywords=config.get_keywords())
    relay = TranscriptRelay(
        display=display,
        tally=tally,
        api_error_text=config.get('ui.api_error_text'),
        language=config.get('recognition.language_code', 'en-AU'),
    )
    dispatcher = UiDispatcher()
    # NOTE: a service account file bundled with the app is only suitable for demos.
    backend = GoogleStreamingBackend(credentials_path=config.get_google_credentials_path())
    controller = RecordingSessionController(config, backend, relay, dispatcher)
    permission = MicrophonePermission(config.get('permissions.microphone', 'ask'), console=console)
    return CommentaryScreen(config, controller, display, dispatcher, permission, console=console)


def main() -> None:
    """Main entry point for KickCount application."""
    parser = argparse.ArgumentParser(
        description="KickCount - live commentary transcription with a keyword tally",
        epilog="Keys: p=Pause/resume listening, q=Quit"
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
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--permission",
        type=str,
        choices=["ask", "granted", "denied"],
        help="Microphone permission decision (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Listen for this many seconds, then exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"KickCount v{__version__}"
    )

    args = parser.parse_args()

    try:
        config = KickCountConfig(args.config)
        if args.permission:
            config.set('permissions.microphone', args.permission)
        setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

        screen = build_screen(config)
        screen.run(duration=args.duration)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
