"""
Destinations for artifact records.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from .artifacts import ArtifactRecord
from .errors import SinkPostingError
from wayfinder.utils.file_operations import EXPORT_FORMATS, REPORT_WRITERS, log_report_hash

logger = logging.getLogger(__name__)


class ArtifactSink(ABC):
    """Accepts artifact records one at a time"""

    @abstractmethod
    def post(self, record: ArtifactRecord):
        """
        Post a single record.

        Raises:
            SinkPostingError: If the record could not be stored
        """
        pass

    def close(self):
        pass


class MemorySink(ArtifactSink):
    """Keeps posted records in memory, in posting order"""

    def __init__(self):
        self.records: List[ArtifactRecord] = []

    def post(self, record: ArtifactRecord):
        self.records.append(record)
        logger.debug(f"Posted {record.kind} artifact from {record.source}")

    def _of_kind(self, kind: str) -> List[ArtifactRecord]:
        return [record for record in self.records if record.kind == kind]

    @property
    def bookmarks(self):
        return self._of_kind("bookmark")

    @property
    def tracks(self):
        return self._of_kind("track")

    @property
    def routes(self):
        return self._of_kind("route")

    @property
    def areas(self):
        return self._of_kind("area")


class ReportSink(MemorySink):
    """Collects records and writes them to a report file when closed"""

    def __init__(self, output_path: str, export_format: str, system_info: dict = None,
                 extraction_info: dict = None, examiner_name: str = None, case_number: str = None):
        super().__init__()
        if export_format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format '{export_format}'. Supported: {', '.join(EXPORT_FORMATS)}")
        self.output_path = output_path
        self.export_format = export_format
        self.system_info = system_info or {}
        self.extraction_info = extraction_info or {}
        self.examiner_name = examiner_name
        self.case_number = case_number
        self.report_hash = None

    def close(self):
        """
        Write the collected records.

        Raises:
            SinkPostingError: If the report could not be written
        """
        writer = REPORT_WRITERS[self.export_format]
        try:
            writer(self.records, self.output_path, self.system_info, self.extraction_info,
                   examiner_name=self.examiner_name, case_number=self.case_number)
        except (OSError, ValueError) as e:
            logger.error(f"Error writing {self.export_format} report: {e}", exc_info=True)
            raise SinkPostingError(f"Could not write report to {self.output_path}: {e}") from e

        self.report_hash = log_report_hash(self.output_path)
