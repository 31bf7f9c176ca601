"""Command-Line Interface handler for CaptionLoop."""

import argparse
import logging
import sys
import time
from typing import Optional, Sequence

from .config_loader import ConfigLoader
from .log_setup import setup_logging
from .listener import PlaybackListener
from .models import Transcript
from .pipeline import TranscriptPipeline
from .synchronizer import PlaybackSynchronizer
from .transcript_formatter import TextFormatter, get_formatter
from .exceptions import AcquisitionError, CaptionLoopError, ConfigurationError, describe_error

logger = logging.getLogger(__name__) # Get logger for this module

class FollowPrinter(PlaybackListener):
    """Prints the active segment whenever the highlight moves."""

    def __init__(self, transcript: Transcript, out=None):
        self.transcript = transcript
        self.out = out or sys.stdout
        self.formatter = TextFormatter()

    def on_highlight_changed(self, segment_index: Optional[int]) -> None:
        if segment_index is None:
            return
        self.out.write(self.formatter.render_segment(self.transcript, segment_index) + "\n")
        self.out.flush()


def follow_transcript(
    transcript: Transcript,
    start: float = 0.0,
    speed: float = 1.0,
    out=None,
    sleep=time.sleep,
) -> None:
    """
    Plays the transcript against a simulated one-second clock, printing each
    segment as it becomes active.
    """
    listener = FollowPrinter(transcript, out)
    synchronizer = PlaybackSynchronizer(listener=listener)
    t = max(0.0, start)
    synchronizer.on_clock_tick(t)
    synchronizer.load(transcript)
    end = max(segment.end_time for segment in transcript)
    synchronizer.set_video_duration(end)

    while t < end:
        synchronizer.on_clock_tick(t)
        sleep(1.0 / speed)
        t += 1.0


class CLIHandler:
    """Parses arguments and runs the transcript pipeline for one video."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="CaptionLoop: Fetch the English transcript of a YouTube video.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "-u", "--url",
            required=True,
            help="YouTube URL or video ID."
        )
        parser.add_argument(
            "-o", "--output",
            default=None,
            help="File to write the transcript to. Printed to stdout when omitted."
        )
        parser.add_argument(
            "-f", "--format",
            default=None, # Default taken from config
            choices=["text", "srt"],
            help="Output format. Overrides output_format from the config file."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help="Path to the configuration YAML file. Built-in defaults are used when omitted."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--follow",
            action="store_true",
            help="After fetching, print segments in time as a simulated player reaches them."
        )
        parser.add_argument(
            "--follow-speed",
            type=float,
            default=1.0,
            help="Playback speed of the simulated clock used by --follow."
        )
        parser.add_argument(
            "--start",
            type=float,
            default=0.0,
            help="Position in seconds at which --follow starts."
        )
        return parser

    def run(self, argv: Optional[Sequence[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the pipeline."""
        args = self.parser.parse_args(argv)

        # --- Setup Logging ---
        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        # stdout may carry the transcript, so logs go to stderr
        setup_logging(log_level=log_level, log_dir=None, stream=sys.stderr)

        # --- Load Configuration ---
        try:
            config = ConfigLoader().load_config(args.config)
        except ConfigurationError as e:
            logger.critical(f"Failed to load configuration from {args.config}: {e}")
            sys.exit(1)
        except FileNotFoundError:
            logger.critical(f"Configuration file not found: {args.config}")
            sys.exit(1)

        # --- Re-configure Logging with settings from Config ---
        setup_logging(
            log_level=log_level,
            log_dir=config.get('log_dir'),
            log_file=config.get('log_file', 'captionloop.log'),
            stream=sys.stderr,
        )

        # --- Apply CLI Overrides ---
        if args.format:
            logger.info(f"Overriding output_format from config with CLI argument: {args.format}")
            config['output_format'] = args.format
        if args.follow_speed <= 0:
            logger.critical(f"--follow-speed must be positive, got {args.follow_speed}")
            sys.exit(1)

        pipeline = None
        try:
            formatter = get_formatter(config['output_format'])
            pipeline = TranscriptPipeline(config)
            transcript = pipeline.run(args.url)

            if args.output:
                formatter.write(transcript, args.output)
                logger.info(f"Transcript saved to: {args.output}")
            elif not args.follow:
                sys.stdout.write(formatter.render(transcript))

            if args.follow:
                follow_transcript(transcript, start=args.start, speed=args.follow_speed)
            sys.exit(0)

        except AcquisitionError as e:
            # describe_error gives the user-facing wording; details are in the log
            sys.stderr.write(describe_error(e) + "\n")
            sys.exit(1)
        except CaptionLoopError as e:
            logger.error(f"A CaptionLoop error occurred: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2) # Use a different exit code for unexpected crashes
        finally:
            if pipeline is not None:
                pipeline.web_client.close()

def main() -> None:
    CLIHandler().run()
