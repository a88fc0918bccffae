import io
import struct
import logging

import pytest

logger = logging.getLogger(__name__)


class AQBuilder:
    """Builds big-endian AlpineQuest byte sequences for tests"""

    def __init__(self):
        self.buffer = bytearray()

    def int(self, value):
        self.buffer += struct.pack('>i', value)
        return self

    def long(self, value):
        self.buffer += struct.pack('>q', value)
        return self

    def double(self, value):
        self.buffer += struct.pack('>d', value)
        return self

    def bool(self, value):
        self.buffer += b'\x01' if value else b'\x00'
        return self

    def raw(self, data):
        self.buffer += data
        return self

    def string(self, value):
        encoded = value.encode('utf-8')
        return self.int(len(encoded)).raw(encoded)

    def coordinate(self, degrees):
        return self.int(round(degrees * 10000000))

    def metadata_bag(self, entries):
        """entries: list of (name, value); the value's Python type picks the tag"""
        self.int(len(entries))
        for name, value in entries:
            self.string(name)
            if isinstance(value, bool):
                self.int(-1).bool(value)
            elif isinstance(value, int):
                self.int(-2).long(value)
            elif isinstance(value, float):
                self.int(-3).double(value)
            elif isinstance(value, bytes):
                self.int(-4).int(len(value)).raw(value)
            else:
                self.string(value)
        return self

    def metadata(self, entries=(), extensions=()):
        self.metadata_bag(list(entries))
        self.int(len(extensions))
        for name, ext_entries in extensions:
            self.string(name)
            self.metadata_bag(list(ext_entries))
        return self

    def location(self, lon, lat, elevation_raw=0, timestamp_ms=0, extra=b''):
        self.int(20 + len(extra))
        self.coordinate(lon).coordinate(lat).int(elevation_raw).long(timestamp_ms)
        return self.raw(extra)

    def locations(self, locations):
        self.int(len(locations))
        for location in locations:
            self.location(*location)
        return self

    def waypoint(self, name, lon, lat, elevation_raw=0, timestamp_ms=0):
        entries = [("name", name)] if name is not None else []
        return self.metadata(entries).location(lon, lat, elevation_raw, timestamp_ms)

    def waypoints(self, waypoints):
        self.int(len(waypoints))
        for waypoint in waypoints:
            self.waypoint(*waypoint)
        return self

    def segments(self, segments):
        self.int(len(segments))
        for locations in segments:
            self.metadata([]).locations(locations)
        return self

    # Whole files

    def waypoint_file(self, name, lon, lat, elevation_raw=0, timestamp_ms=0, header=b''):
        self.int(1).int(len(header)).raw(header)
        return self.waypoint(name, lon, lat, elevation_raw, timestamp_ms)

    def track_file(self, name, segments, waypoints=(), first_timestamp_ms=0):
        num_locations = sum(len(locations) for locations in segments)
        self.int(2).int(0).int(num_locations).int(len(segments)).int(len(waypoints))
        self.coordinate(0.0).coordinate(0.0).long(first_timestamp_ms)
        self.double(1234.5).double(1240.25).double(87.0).long(3600000)
        self.metadata([("name", name)] if name else [])
        return self.waypoints(list(waypoints)).segments(segments)

    def route_file(self, name, waypoints, first_timestamp_ms=0):
        self.int(1).int(0).int(len(waypoints))
        self.coordinate(6.5).coordinate(45.25).long(first_timestamp_ms)
        self.double(5000.0).double(5100.0).double(320.0).long(0)
        self.metadata([("name", name)] if name else [])
        return self.waypoints(list(waypoints))

    def set_file(self, name, waypoints):
        self.int(1).int(0).int(len(waypoints))
        self.coordinate(6.5).coordinate(45.25)
        self.metadata([("file_desc", name)] if name else [])
        return self.waypoints(list(waypoints))

    def area_file(self, name, locations):
        self.int(1).int(0).int(len(locations))
        self.coordinate(6.5).coordinate(45.25)
        self.double(400.0).double(10000.0)
        self.metadata([("name", name)] if name else [])
        return self.locations(list(locations))

    def bytes(self):
        return bytes(self.buffer)

    def stream(self):
        return io.BytesIO(self.bytes())


@pytest.fixture
def builder():
    return AQBuilder()


@pytest.fixture
def make_builder():
    """Factory for tests that need several independent byte sequences"""
    return AQBuilder


@pytest.fixture
def alpinequest_dir(tmp_path):
    """An exported data source with an AlpineQuest application folder"""
    app_dir = tmp_path / "data" / "media" / "0" / "psyberia.alpinequest.full" / "Landmarks"
    app_dir.mkdir(parents=True)
    logger.info("Created AlpineQuest folder: %s", app_dir)
    return app_dir
