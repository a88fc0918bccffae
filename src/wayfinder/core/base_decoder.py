from abc import ABC, abstractmethod
from typing import Any, BinaryIO, List, Optional
import logging
import time

from .artifacts import ArtifactRecord, post_records
from .errors import DecodeError
from .file_reader import AlpineQuestReader

# Setup logger for base_decoder module
logger = logging.getLogger(__name__)


class BaseDecoder(ABC):
    """Abstract base class for all AlpineQuest file decoders"""

    def __init__(self):
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._logger.debug(f"Initializing decoder: {self.__class__.__name__}")

    @abstractmethod
    def get_name(self) -> str:
        """Return the name of this decoder (e.g., 'AlpineQuest Track')"""
        pass

    @abstractmethod
    def get_supported_extensions(self) -> List[str]:
        """Return list of supported file extensions (e.g., ['.trk'])"""
        pass

    @abstractmethod
    def decode(self, reader: AlpineQuestReader, source: Optional[str]) -> Any:
        """
        Decode one file from its reader.

        Args:
            reader: Reader positioned at the start of the file
            source: Path or label of the file being decoded

        Returns:
            The decoded file structure

        Raises:
            DecodeError: If the data is truncated or malformed
        """
        pass

    @abstractmethod
    def create_artifacts(self, decoded: Any) -> List[ArtifactRecord]:
        """Map a decoded file structure to artifact records"""
        pass

    def decode_stream(self, stream: BinaryIO, source: Optional[str] = None) -> Any:
        reader = AlpineQuestReader(stream, source)
        decoded = self.decode(reader, source)
        self._logger.debug(f"Decoded {reader.bytes_read} bytes from {source}")
        return decoded

    def decode_file(self, file_path: str) -> Any:
        """Open and decode a file. Decode errors are logged and re-raised."""
        start_time = time.time()
        self._log_extraction_start(file_path)

        try:
            with open(file_path, 'rb') as f:
                decoded = self.decode_stream(f, file_path)
        except DecodeError as e:
            self._log_extraction_error(str(e))
            raise

        self._logger.debug(f"Decode of {file_path} took {time.time() - start_time:.3f} seconds")
        return decoded

    def extract_artifacts(self, file_path: str, sink) -> int:
        """
        Decode a file, create its artifacts and post them to a sink.

        Returns:
            Number of records posted
        """
        start_time = time.time()
        decoded = self.decode_file(file_path)
        records = self.create_artifacts(decoded)
        posted = post_records(records, sink)
        if posted != len(records):
            self._logger.warning(f"Posted {posted} of {len(records)} artifacts from {file_path}")
        self._log_extraction_complete(posted, time.time() - start_time)
        return posted

    def _log_extraction_start(self, file_path: str):
        """Helper method to log extraction start"""
        self._logger.info(f"Starting extraction from: {file_path}")
        self._logger.debug(f"Decoder: {self.get_name()}, Supported extensions: {self.get_supported_extensions()}")

    def _log_extraction_complete(self, entries_count: int, elapsed_time: float = None):
        """Helper method to log extraction completion"""
        if elapsed_time:
            self._logger.info(f"Extraction complete. Created {entries_count} artifacts in {elapsed_time:.2f} seconds")
        else:
            self._logger.info(f"Extraction complete. Created {entries_count} artifacts")

    def _log_extraction_error(self, error: str):
        """Helper method to log extraction errors"""
        self._logger.error(f"Extraction failed: {error}")

    def _log_count_mismatch(self, what: str, declared: int, actual: int):
        if declared != actual:
            self._logger.debug(f"Header declares {declared} {what} but {actual} were read")
