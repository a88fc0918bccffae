from dataclasses import dataclass, field
from typing import List, Optional

from wayfinder.core.artifacts import ArtifactRecord, bookmarks_from_waypoints, track_from_segments
from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.file_reader import AlpineQuestReader
from wayfinder.core.structures import Metadata, Segment, Waypoint


@dataclass
class TrackFile:
    """Data contained in an AlpineQuest .trk file"""
    source: Optional[str]
    version: int
    header_size: int
    num_locations: int
    num_segments: int
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
    segments: List[Segment] = field(default_factory=list)


class TrackDecoder(BaseDecoder):

    def get_name(self) -> str:
        return "AlpineQuest Track"

    def get_supported_extensions(self) -> List[str]:
        return ['.trk']

    def decode(self, reader: AlpineQuestReader, source: Optional[str] = None) -> TrackFile:
        version = reader.read_int()
        header_size = reader.read_int()
        num_locations = reader.read_int()
        num_segments = reader.read_int()
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
        segments = reader.read_segments()

        self._log_count_mismatch("waypoints", num_waypoints, len(waypoints))
        self._log_count_mismatch("segments", num_segments, len(segments))
        self._log_count_mismatch("locations", num_locations,
                                 sum(len(segment.locations) for segment in segments))

        return TrackFile(source, version, header_size, num_locations, num_segments, num_waypoints,
                         first_long, first_lat, first_timestamp, track_len, track_len_with_elevation,
                         elevation_gain, total_time, metadata, waypoints, segments)

    def create_artifacts(self, decoded: TrackFile) -> List[ArtifactRecord]:
        records: List[ArtifactRecord] = []
        track = track_from_segments(decoded.segments, decoded.metadata.name, decoded.source)
        if track:
            records.append(track)

        # Waypoints added while recording the track are not saved anywhere else
        records.extend(bookmarks_from_waypoints(decoded.waypoints, decoded.source))
        return records
