from dataclasses import dataclass, field
from typing import List, Optional

from wayfinder.core.artifacts import ArtifactRecord, area_from_locations
from wayfinder.core.base_decoder import BaseDecoder
from wayfinder.core.file_reader import AlpineQuestReader
from wayfinder.core.structures import Location, Metadata


@dataclass
class AreaFile:
    """Data contained in an AlpineQuest .are file (an outlined area)"""
    source: Optional[str]
    version: int
    header_size: int
    num_locations: int
    first_longitude: float
    first_latitude: float
    total_length: float
    total_area: float
    metadata: Metadata
    locations: List[Location] = field(default_factory=list)


class AreaDecoder(BaseDecoder):

    def get_name(self) -> str:
        return "AlpineQuest Area"

    def get_supported_extensions(self) -> List[str]:
        return ['.are']

    def decode(self, reader: AlpineQuestReader, source: Optional[str] = None) -> AreaFile:
        version = reader.read_int()
        header_size = reader.read_int()
        num_locations = reader.read_int()
        first_long = reader.read_coordinate()
        first_lat = reader.read_coordinate()
        total_length = reader.read_double()
        total_area = reader.read_double()
        metadata = reader.read_metadata()
        locations = reader.read_locations()

        self._log_count_mismatch("locations", num_locations, len(locations))
        return AreaFile(source, version, header_size, num_locations, first_long, first_lat,
                        total_length, total_area, metadata, locations)

    def create_artifacts(self, decoded: AreaFile) -> List[ArtifactRecord]:
        area = area_from_locations(decoded.locations, decoded.metadata.name, decoded.source)
        return [area] if area else []
