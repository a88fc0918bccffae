"""
Sequential reader for AlpineQuest structures and primitives.

All multi-byte values are big-endian. The reader only moves forward through
its stream; any shortfall in the data raises TruncatedDataError.
"""

import struct
import logging
from typing import BinaryIO, List, Optional

from .errors import EncodingError, TruncatedDataError, UnknownEntryTag
from .structures import (
    Location, Metadata, MetadataBag, MetadataEntry, MetadataEntryType,
    MetadataExtension, Segment, Waypoint,
)

logger = logging.getLogger(__name__)

# Coordinates are stored as degrees * 10^7
COORDINATE_SCALE = 10000000
# Elevations are stored as millimetres
ELEVATION_SCALE = 1000
# Flag for "no elevation"
ELEVATION_UNKNOWN = -999999999
# lon (4) + lat (4) + elevation (4) + timestamp (8)
LOCATION_FIXED_SIZE = 20

# Upper bound on a single stream read
READ_CHUNK_SIZE = 65536


class AlpineQuestReader:
    """Reads AlpineQuest primitives and shared sub-structures from a stream"""

    def __init__(self, stream: BinaryIO, source: Optional[str] = None):
        self.stream = stream
        self.source = source
        self._bytes_read = 0

    @property
    def bytes_read(self) -> int:
        """Number of bytes consumed so far"""
        return self._bytes_read

    # ------------------------------------------------------------------
    # Primitives

    def read_raw(self, length: int) -> bytes:
        """Read exactly `length` bytes from the stream."""
        if length < 0:
            raise TruncatedDataError(f"Invalid read length {length} at offset {self._bytes_read}",
                                     self.source)
        if length == 0:
            return b""

        chunks = []
        remaining = length
        try:
            while remaining > 0:
                chunk = self.stream.read(min(remaining, READ_CHUNK_SIZE))
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        except OSError as e:
            raise TruncatedDataError(f"Error reading {length} bytes from stream: {e}",
                                     self.source) from e

        data = b"".join(chunks)
        self._bytes_read += len(data)
        if remaining > 0:
            raise TruncatedDataError(f"Ran out of data while reading file: wanted {length} bytes, "
                                     f"got {len(data)} at offset {self._bytes_read - len(data)}",
                                     self.source)
        return data

    def read_int(self) -> int:
        return struct.unpack('>i', self.read_raw(4))[0]

    def read_long(self) -> int:
        return struct.unpack('>q', self.read_raw(8))[0]

    def read_double(self) -> float:
        return struct.unpack('>d', self.read_raw(8))[0]

    def read_boolean(self) -> bool:
        return self.read_raw(1)[0] != 0

    def read_string(self, length: Optional[int] = None) -> str:
        """
        Read a UTF-8 string.

        Args:
            length: Number of bytes to read. If omitted, a four byte length
                prefix is read first.

        Returns:
            The decoded string; empty if the length is zero or negative
        """
        if length is None:
            length = self.read_int()
        if length <= 0:
            return ""

        offset = self._bytes_read
        string_bytes = self.read_raw(length)
        try:
            return string_bytes.decode('utf-8')
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 in {length} byte string at offset {offset}: {e}",
                                self.source) from e

    def skip_bytes(self, length: int):
        """Skip over some bytes in the stream without keeping them."""
        remaining = length
        while remaining > 0:
            chunk_size = min(remaining, READ_CHUNK_SIZE)
            self.read_raw(chunk_size)
            remaining -= chunk_size

    # ------------------------------------------------------------------
    # Domain scalars

    def read_coordinate(self) -> float:
        """Read a coordinate in degrees."""
        return self.read_int() / COORDINATE_SCALE

    def read_elevation(self) -> float:
        """Read an elevation in meters. The "unknown" flag reads as 0."""
        value = self.read_int()
        if value == ELEVATION_UNKNOWN:
            return 0.0
        return value / ELEVATION_SCALE

    def read_timestamp(self) -> Optional[int]:
        """
        Read a millisecond timestamp and convert it to epoch seconds.

        Returns:
            Seconds since the epoch, or None if the stored value was zero
        """
        millis = self.read_long()
        if millis == 0:
            return None
        # Truncate toward zero rather than flooring
        seconds = abs(millis) // 1000
        return seconds if millis > 0 else -seconds

    # ------------------------------------------------------------------
    # Metadata

    def read_metadata_bag(self) -> MetadataBag:
        """Read a list of typed metadata entries."""
        num_entries = self.read_int()
        entries = []
        for _ in range(num_entries):
            name = self.read_string()

            # Type of the data if negative, otherwise the length of string data
            type_or_len = self.read_int()
            if type_or_len >= 0:
                entries.append(MetadataEntry(name, MetadataEntryType.STRING,
                                             self.read_string(type_or_len)))
            elif type_or_len == MetadataEntryType.BOOLEAN:
                entries.append(MetadataEntry(name, MetadataEntryType.BOOLEAN, self.read_boolean()))
            elif type_or_len == MetadataEntryType.LONG:
                entries.append(MetadataEntry(name, MetadataEntryType.LONG, self.read_long()))
            elif type_or_len == MetadataEntryType.DOUBLE:
                entries.append(MetadataEntry(name, MetadataEntryType.DOUBLE, self.read_double()))
            elif type_or_len == MetadataEntryType.RAW:
                raw_len = self.read_int()
                entries.append(MetadataEntry(name, MetadataEntryType.RAW, self.read_raw(raw_len)))
            else:
                raise UnknownEntryTag(type_or_len, name, self.source)

        logger.debug(f"Read metadata bag with {len(entries)} entries")
        return MetadataBag(entries)

    def read_metadata_extensions(self) -> List[MetadataExtension]:
        count = self.read_int()
        extensions = []
        for _ in range(count):
            name = self.read_string()
            extensions.append(MetadataExtension(name, self.read_metadata_bag()))
        return extensions

    def read_metadata(self) -> Metadata:
        base = self.read_metadata_bag()
        extensions = self.read_metadata_extensions()
        return Metadata(base, extensions)

    # ------------------------------------------------------------------
    # Locations, waypoints and segments

    def read_location(self) -> Location:
        entry_len = self.read_int()
        longitude = self.read_coordinate()
        latitude = self.read_coordinate()
        elevation = self.read_elevation()
        timestamp = self.read_timestamp()

        # Optional accuracy/pressure fields follow in newer files; they are not kept
        bytes_left = entry_len - LOCATION_FIXED_SIZE
        if bytes_left > 0:
            self.skip_bytes(bytes_left)

        return Location(longitude, latitude, elevation, timestamp)

    def read_locations(self) -> List[Location]:
        num_locations = self.read_int()
        return [self.read_location() for _ in range(num_locations)]

    def read_waypoint(self) -> Waypoint:
        metadata = self.read_metadata()
        location = self.read_location()
        return Waypoint(metadata, location)

    def read_waypoints(self) -> List[Waypoint]:
        num_waypoints = self.read_int()
        return [self.read_waypoint() for _ in range(num_waypoints)]

    def read_segment(self) -> Segment:
        metadata = self.read_metadata()
        locations = self.read_locations()
        return Segment(metadata, locations)

    def read_segments(self) -> List[Segment]:
        num_segments = self.read_int()
        return [self.read_segment() for _ in range(num_segments)]
