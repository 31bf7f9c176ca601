"""
Batch transcript fetching.

Reads YouTube URLs (one per line) from a text file and writes each video's
transcript to <output-dir>/<video_id>.<ext>.
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional, Sequence

# Progress bar library
from tqdm import tqdm

from .config_loader import ConfigLoader
from .log_setup import setup_logging
from .pipeline import TranscriptPipeline
from .transcript_formatter import get_formatter
from .exceptions import AcquisitionError, CaptionLoopError, ConfigurationError, describe_error
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

def read_url_list(list_path: str) -> List[str]:
    """
    Reads URLs from a text file, skipping blank lines and # comments.
    Duplicate entries are kept once, in first-seen order.

    Raises:
        FileNotFoundError: If the list file doesn't exist.
    """
    if not os.path.isfile(list_path):
        raise FileNotFoundError(f"URL list not found: {list_path}")

    urls = []
    seen = set()
    with open(list_path, 'r', encoding='utf-8') as f:
        for line in f:
            entry = line.split('#', 1)[0].strip()
            if entry and entry not in seen:
                seen.add(entry)
                urls.append(entry)
    logger.info(f"Read {len(urls)} URLs from {list_path}")
    return urls


def run_batch_processing(argv: Optional[Sequence[str]] = None) -> None:
    """Parses arguments, sets up, and fetches every transcript in the list."""
    parser = argparse.ArgumentParser(
        description="CaptionLoop Batch: Fetch English transcripts for every URL in a list file.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="Text file with one YouTube URL or video ID per line."
    )
    parser.add_argument(
        "-o", "--output-dir",
        required=True,
        help="Directory to save the transcript files."
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to the configuration YAML file. Built-in defaults are used when omitted."
    )
    parser.add_argument(
        "-f", "--format",
        default=None, # Default taken from config
        choices=["text", "srt"],
        help="Output format. Overrides output_format from the config file."
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level for console and file output."
    )

    args = parser.parse_args(argv)

    # --- Setup Logging (Initial) ---
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    setup_logging(log_level=log_level, log_dir=None)

    # --- Load Configuration ---
    try:
        config = ConfigLoader().load_config(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.critical(f"Failed to load configuration: {e}")
        sys.exit(1)

    # --- Re-configure Logging (Final) ---
    setup_logging(
        log_level=log_level,
        log_dir=config.get('log_dir'),
        log_file='captionloop_batch.log', # Separate log file for batch runs
    )

    if args.format:
        logger.info(f"Overriding output_format from config with CLI argument: {args.format}")
        config['output_format'] = args.format

    # --- Read URL list ---
    try:
        urls = read_url_list(args.input)
    except FileNotFoundError as e:
        logger.critical(f"Input list error: {e}")
        sys.exit(1)
    if not urls:
        logger.warning(f"No URLs found in {args.input}. Exiting.")
        sys.exit(0)

    try:
        ensure_dir_exists(args.output_dir)
        formatter = get_formatter(config['output_format'])
    except CaptionLoopError as e:
        logger.critical(f"Could not prepare output: {e}")
        sys.exit(1)

    # One pipeline (and HTTP session) for the whole batch
    pipeline = TranscriptPipeline(config)

    total = len(urls)
    fetched = 0
    failed = 0
    batch_start_time = time.time()
    logger.info(f"--- Starting batch transcript fetch for {total} videos ---")

    try:
        with tqdm(total=total, unit="video", desc="Starting Batch") as pbar:
            for url in urls:
                pbar.set_description(f"Fetching: {url[-30:]}")
                try:
                    transcript = pipeline.run(url)
                    output_path = os.path.join(args.output_dir, f"{transcript.video_id}.{formatter.extension}")
                    formatter.write(transcript, output_path)
                    fetched += 1
                except AcquisitionError as e:
                    logger.error(f"No transcript for '{url}': {describe_error(e)}")
                    failed += 1
                except CaptionLoopError as e:
                    logger.error(f"Could not save transcript for '{url}': {e}")
                    failed += 1
                finally:
                    pbar.update(1) # Increment progress bar regardless of success/failure
    except KeyboardInterrupt:
        logger.warning("Batch process interrupted by user (Ctrl+C). Exiting.")
        sys.exit(1)
    finally:
        pipeline.web_client.close()

    logger.info(f"--- Batch transcript fetch finished ---")
    logger.info(f"Total time: {time.time() - batch_start_time:.2f} seconds")
    logger.info(f"Successfully fetched: {fetched}/{total} videos")
    logger.info(f"Failed: {failed}/{total} videos")

    sys.exit(1 if failed > 0 else 0)
