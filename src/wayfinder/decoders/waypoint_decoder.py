from dataclasses import dataclass
from typing import List, Optional

from wayfinder.core.artifacts import ArtifactRecord, bookmark_from_waypoint
from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.file_reader import AlpineQuestReader
from wayfinder.core.structures import Metadata, Waypoint


@dataclass
class WaypointFile:
    """Data contained in an AlpineQuest .wpt file"""
    source: Optional[str]
    version: int
    header_size: int
    waypoint: Waypoint

    @property
    def metadata(self) -> Metadata:
        return self.waypoint.metadata


class WaypointDecoder(BaseDecoder):

    def get_name(self) -> str:
        return "AlpineQuest Waypoint"

    def get_supported_extensions(self) -> List[str]:
        return ['.wpt']

    def decode(self, reader: AlpineQuestReader, source: Optional[str] = None) -> WaypointFile:
        version = reader.read_int()

        # Nothing is known about the header contents. In sample data the size is zero.
        header_size = reader.read_int()
        if header_size > 0:
            self._logger.debug(f"Skipping {header_size} header bytes")
            reader.skip_bytes(header_size)

        waypoint = reader.read_waypoint()
        return WaypointFile(source, version, header_size, waypoint)

    def create_artifacts(self, decoded: WaypointFile) -> List[ArtifactRecord]:
        return [bookmark_from_waypoint(decoded.waypoint, decoded.source)]
