from dataclasses import dataclass, field
from typing import List, Optional

from wayfinder.core.artifacts import ArtifactRecord, bookmarks_from_waypoints
from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.file_reader import AlpineQuestReader
from wayfinder.core.structures import Metadata, Waypoint


@dataclass
class SetFile:
    """Data contained in an AlpineQuest .set file (a collection of waypoints)"""
    source: Optional[str]
    version: int
    header_size: int
    num_waypoints: int
    first_longitude: float
    first_latitude: float
    metadata: Metadata
    waypoints: List[Waypoint] = field(default_factory=list)


class SetDecoder(BaseDecoder):

    def get_name(self) -> str:
        return "AlpineQuest Set"

    def get_supported_extensions(self) -> List[str]:
        return ['.set']

    def decode(self, reader: AlpineQuestReader, source: Optional[str] = None) -> SetFile:
        version = reader.read_int()
        header_size = reader.read_int()
        num_waypoints = reader.read_int()
        first_long = reader.read_coordinate()
        first_lat = reader.read_coordinate()
        metadata = reader.read_metadata()
        waypoints = reader.read_waypoints()

        self._log_count_mismatch("waypoints", num_waypoints, len(waypoints))
        return SetFile(source, version, header_size, num_waypoints, first_long, first_lat,
                       metadata, waypoints)

    def create_artifacts(self, decoded: SetFile) -> List[ArtifactRecord]:
        return bookmarks_from_waypoints(decoded.waypoints, decoded.source)
