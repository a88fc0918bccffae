from dataclasses import dataclass, field
from typing import List, Optional

from wayfinder.core.artifacts import ArtifactRecord, route_from_waypoints
from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.file_reader import AlpineQuestReader
from wayfinder.core.structures import Metadata, Waypoint


@dataclass
class RouteFile:
    """Data contained in an AlpineQuest .rte file"""
    source: Optional[str]
    version: int
    header_size: int
    num_waypoints: int
    first_longitude: float
    first_latitude: float
    first_timestamp: Optional[int]
    total_length: float
    total_length_with_elevation: float
    total_elevation_gain: float
    total_time: int
    metadata: Metadata
    waypoints: List[Waypoint] = field(default_factory=list)


class RouteDecoder(BaseDecoder):

    def get_name(self) -> str:
        return "AlpineQuest Route"

    def get_supported_extensions(self) -> List[str]:
        return ['.rte']

    def decode(self, reader: AlpineQuestReader, source: Optional[str] = None) -> RouteFile:
        version = reader.read_int()
        header_size = reader.read_int()
        num_waypoints = reader.read_int()
        first_long = reader.read_coordinate()
        first_lat = reader.read_coordinate()
        first_timestamp = reader.read_timestamp()
        track_len = reader.read_double()
        track_len_with_elevation = reader.read_double()
        elevation_gain = reader.read_double()
        total_time = reader.read_long()
        metadata = reader.read_metadata()
        waypoints = reader.read_waypoints()

        self._log_count_mismatch("waypoints", num_waypoints, len(waypoints))
        return RouteFile(source, version, header_size, num_waypoints, first_long, first_lat,
                         first_timestamp, track_len, track_len_with_elevation, elevation_gain,
                         total_time, metadata, waypoints)

    def create_artifacts(self, decoded: RouteFile) -> List[ArtifactRecord]:
        route = route_from_waypoints(decoded.waypoints, decoded.metadata.name,
                                     decoded.first_timestamp, decoded.source)
        return [route] if route else []
