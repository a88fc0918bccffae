"""
CLI Interface Module for WAYFINDER

This module contains the decoder registry, the scan driver that finds and
processes AlpineQuest files in a data source folder, and the command-line
front end.
"""

import os
import sys
import time
import inspect
import logging
import argparse
import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Type

from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.errors import DecodeError, SinkPostingError
from wayfinder.core.sink import ReportSink
from wayfinder.utils.file_operations import (
    EXPORT_FORMATS, generate_output_filename, validate_file_path, validate_folder_path,
)
from wayfinder.utils.system_info import get_extraction_info, get_system_info

logger = logging.getLogger(__name__)

# The actual folder names are psyberia.alpinequest.free and psyberia.alpinequest.full
ALPINE_QUEST_PATH = "psyberia.alpinequest"
ALPINE_QUEST_EXTENSIONS = ("wpt", "trk", "rte", "set", "are")


class DecoderRegistry:
    """Registry for loading and managing decoders"""

    def __init__(self):
        self.decoders: Dict[str, Type[BaseDecoder]] = {}
        self.load_decoders()

    def register(self, decoder_class: Type[BaseDecoder]):
        instance = decoder_class()
        self.decoders[instance.get_name()] = decoder_class
        logger.debug(f"Registered decoder: {instance.get_name()}")

    def load_decoders(self):
        """Load all available decoders from the decoders package"""
        decoders_dir = Path(__file__).parent.parent / "decoders"
        logger.debug(f"Loading decoders from {decoders_dir}")

        for decoder_file in sorted(decoders_dir.glob("*_decoder.py")):
            module_name = f"wayfinder.decoders.{decoder_file.stem}"
            module = importlib.import_module(module_name)

            # Find classes that inherit from BaseDecoder
            for name, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, BaseDecoder) and obj is not BaseDecoder and \
                        obj.__module__ == module.__name__:
                    self.register(obj)

        logger.info(f"Successfully loaded {len(self.decoders)} decoders")

    def get_decoder_names(self) -> List[str]:
        """Get list of available decoder names"""
        return sorted(self.decoders.keys())

    def get_decoder_for_path(self, file_path: str) -> Optional[BaseDecoder]:
        """Get a decoder instance for a file, chosen by its extension"""
        extension = os.path.splitext(file_path)[1].lower()
        for decoder_class in self.decoders.values():
            decoder = decoder_class()
            if extension in [ext.lower() for ext in decoder.get_supported_extensions()]:
                return decoder
        return None


@dataclass
class ScanResult:
    """Outcome of processing the files of one data source"""
    files_found: List[str] = field(default_factory=list)
    files_processed: List[str] = field(default_factory=list)
    failed_files: List[Tuple[str, str]] = field(default_factory=list)
    records_posted: int = 0
    cancelled: bool = False
    aborted: bool = False


def is_alpinequest_file(file_path: str, folder_marker: Optional[str] = ALPINE_QUEST_PATH) -> bool:
    """
    Check whether a path looks like an AlpineQuest GPS file.

    The extension must be one of the five AlpineQuest types and the parent
    path must contain the application folder marker. Both checks ignore case.
    A marker of None accepts any folder.
    """
    path = Path(file_path)
    if path.suffix[1:].lower() not in ALPINE_QUEST_EXTENSIONS:
        return False
    if folder_marker is None:
        return True
    return folder_marker.lower() in str(path.parent).lower()


def find_alpinequest_files(root: str, folder_marker: Optional[str] = ALPINE_QUEST_PATH) -> List[str]:
    """Find all AlpineQuest files under a data source folder, in sorted order"""
    logger.info(f"Searching for AlpineQuest files under: {root}")
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            file_path = os.path.join(dirpath, filename)
            if is_alpinequest_file(file_path, folder_marker):
                found.append(file_path)
    logger.info(f"Found {len(found)} AlpineQuest files")
    return found


def process_files(files: List[str], registry: DecoderRegistry, sink,
                  stop_event=None, progress_callback: Callable[[str, int], None] = None,
                  abort_on_error: bool = False) -> ScanResult:
    """
    Decode each file and post its artifacts to the sink.

    A file that fails to decode is logged and recorded, and the scan moves on
    to the next file, unless abort_on_error is set. Cancellation through
    stop_event is checked between files.
    """
    result = ScanResult(files_found=list(files))
    total_files = len(files)
    logger.info(f"Processing {total_files} AlpineQuest files")

    for i, file_path in enumerate(files):
        if stop_event and stop_event.is_set():
            logger.warning(f"Processing stopped by user at file {i}/{total_files}")
            result.cancelled = True
            break

        decoder = registry.get_decoder_for_path(file_path)
        if decoder is None:
            logger.warning(f"No decoder available for: {file_path}")
            result.failed_files.append((file_path, "No decoder for file extension"))
        else:
            try:
                result.records_posted += decoder.extract_artifacts(file_path, sink)
                result.files_processed.append(file_path)
            except (DecodeError, OSError) as e:
                logger.error(f"Error processing {file_path}: {e}")
                result.failed_files.append((file_path, str(e)))
                if abort_on_error:
                    result.aborted = True

        if progress_callback and total_files:
            progress_callback(f"Processed file {i + 1}/{total_files}", 100 * (i + 1) // total_files)

        if result.aborted:
            logger.error("Aborting scan after failed file")
            break

    logger.info(f"Scan complete. Processed {len(result.files_processed)} files, "
                f"{len(result.failed_files)} failed, {result.records_posted} artifacts posted")
    return result


def get_cli_arguments(argv=None):
    """Parse and return CLI arguments"""
    parser = argparse.ArgumentParser(
        prog="wayfinder",
        description="Extract GPS artifacts from AlpineQuest waypoint, track, route, set and area files"
    )
    parser.add_argument("input", help="Data source folder to scan, or a single AlpineQuest file")
    parser.add_argument("-f", "--format", choices=EXPORT_FORMATS, default="xlsx",
                        help="Report format (default: xlsx)")
    parser.add_argument("-o", "--output", help="Report file path (default: timestamped name next to the input)")
    parser.add_argument("--examiner", help="Examiner name recorded in the report")
    parser.add_argument("--case-number", help="Case number recorded in the report")
    parser.add_argument("--folder-marker", default=ALPINE_QUEST_PATH,
                        help=f"Text the parent folder must contain (default: {ALPINE_QUEST_PATH})")
    parser.add_argument("--any-folder", action="store_true",
                        help="Accept AlpineQuest files in any folder")
    parser.add_argument("--stop-on-error", action="store_true",
                        help="Stop the scan at the first file that fails to decode")
    parser.add_argument("--log-dir", default="logs", help="Directory for the log file (default: logs)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console")
    return parser.parse_args(argv)


def collect_input_files(input_path: str, folder_marker: Optional[str]) -> Tuple[Optional[List[str]], Optional[str]]:
    """Resolve the CLI input to a list of files, or an error message"""
    if os.path.isdir(input_path):
        is_valid, result = validate_folder_path(input_path)
        if not is_valid:
            return None, result
        return find_alpinequest_files(result, folder_marker), None

    extensions = [f".{ext}" for ext in ALPINE_QUEST_EXTENSIONS]
    is_valid, result = validate_file_path(input_path, extensions)
    if not is_valid:
        return None, result
    return [result], None


def print_processing_summary(result: ScanResult, processing_time: float, output_file: str):
    """Print summary of processing results"""
    print("\n" + "=" * 50)
    print("PROCESSING SUMMARY")
    print("=" * 50)
    print(f"AlpineQuest files found: {len(result.files_found)}")
    print(f"Files processed: {len(result.files_processed)}")
    print(f"Files failed: {len(result.failed_files)}")
    for file_path, error in result.failed_files:
        print(f"  {file_path}: {error}")
    print(f"Artifacts created: {result.records_posted}")
    print(f"Processing time: {processing_time:.2f} seconds")
    print(f"Results written to: {output_file}")
    print("=" * 50)


def run_cli(args) -> int:
    """Run a scan from parsed arguments. Returns the process exit code."""
    logger.info("Starting WAYFINDER in CLI mode")

    registry = DecoderRegistry()
    folder_marker = None if args.any_folder else args.folder_marker

    files, error = collect_input_files(args.input, folder_marker)
    if error:
        logger.error(f"CLI input validation failed: {error}")
        print(f"Error: {error}")
        return 1

    output_file = args.output or generate_output_filename(args.input, args.format)
    system_info = get_system_info(input_path=args.input, output_file=output_file,
                                  execution_mode="CLI", decoder_registry=registry)
    sink = ReportSink(output_file, args.format, system_info=system_info,
                      examiner_name=args.examiner, case_number=args.case_number)

    def progress_callback(status, percent):
        print(f"{status} ({percent}%)")

    start_time = time.time()
    result = process_files(files, registry, sink, progress_callback=progress_callback,
                           abort_on_error=args.stop_on_error)
    processing_time = time.time() - start_time

    sink.extraction_info = get_extraction_info(args.input, output_file, result, processing_time)
    try:
        sink.close()
    except SinkPostingError as e:
        logger.error(f"Error writing output file: {e}")
        print(f"Error writing output file: {e}", file=sys.stderr)
        return 1

    print_processing_summary(result, processing_time, output_file)
    logger.info(f"CLI processing complete. Output saved to: {output_file}")
    return 1 if result.aborted else 0
