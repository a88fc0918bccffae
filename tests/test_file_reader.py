import io
import math
import logging

import pytest

from wayfinder.core.errors import EncodingError, TruncatedDataError, UnknownEntryTag
from wayfinder.core.file_reader import READ_CHUNK_SIZE, AlpineQuestReader
from wayfinder.core.structures import MetadataEntryType

logger = logging.getLogger(__name__)


def reader_for(data: bytes) -> AlpineQuestReader:
    return AlpineQuestReader(io.BytesIO(data), source="test.bin")


class ChunkedStream(io.RawIOBase):
    """Returns at most `chunk` bytes per read, like a slow raw stream"""

    def __init__(self, data, chunk=3):
        self.data = data
        self.pos = 0
        self.chunk = chunk

    def readable(self):
        return True

    def read(self, size=-1):
        size = min(size, self.chunk)
        result = self.data[self.pos:self.pos + size]
        self.pos += len(result)
        return result


class RecordingStream(io.BytesIO):
    """Remembers the size of every read request"""

    def __init__(self, data):
        super().__init__(data)
        self.requests = []

    def read(self, size=-1):
        self.requests.append(size)
        return super().read(size)


class FailingStream(io.RawIOBase):
    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError("device not ready")


class TestPrimitives:
    def test_read_raw_exact(self):
        reader = reader_for(b"abcdef")
        assert reader.read_raw(4) == b"abcd"
        assert reader.bytes_read == 4

    def test_read_raw_zero(self):
        assert reader_for(b"").read_raw(0) == b""

    def test_read_raw_short_raises(self):
        with pytest.raises(TruncatedDataError):
            reader_for(b"abc").read_raw(4)

    def test_read_raw_negative_raises(self):
        with pytest.raises(TruncatedDataError):
            reader_for(b"abc").read_raw(-1)

    def test_read_raw_joins_short_reads(self):
        reader = AlpineQuestReader(ChunkedStream(b"0123456789", chunk=3))
        assert reader.read_raw(8) == b"01234567"

    def test_huge_declared_length_reads_in_chunks(self):
        stream = RecordingStream(b"x" * (READ_CHUNK_SIZE + 10))
        reader = AlpineQuestReader(stream, source="corrupt.wpt")
        with pytest.raises(TruncatedDataError):
            reader.read_raw(0x7FFFFFF0)
        assert max(stream.requests) <= READ_CHUNK_SIZE
        assert reader.bytes_read == READ_CHUNK_SIZE + 10

    def test_io_error_is_wrapped(self):
        reader = AlpineQuestReader(FailingStream(), source="broken.wpt")
        with pytest.raises(TruncatedDataError) as excinfo:
            reader.read_int()
        assert "broken.wpt" in str(excinfo.value)

    def test_integers_are_big_endian(self, builder):
        reader = reader_for(builder.int(-2).long(2 ** 40).bytes())
        assert reader.read_int() == -2
        assert reader.read_long() == 2 ** 40

    def test_read_double(self, builder):
        assert reader_for(builder.double(-12.75).bytes()).read_double() == -12.75

    def test_read_boolean(self):
        reader = reader_for(b"\x00\x01\x7f")
        assert reader.read_boolean() is False
        assert reader.read_boolean() is True
        assert reader.read_boolean() is True

    def test_read_string_with_prefix(self, builder):
        reader = reader_for(builder.string("Mont Blanc é").bytes())
        assert reader.read_string() == "Mont Blanc é"

    def test_read_string_non_positive_length(self):
        reader = reader_for(b"trailing")
        assert reader.read_string(0) == ""
        assert reader.read_string(-5) == ""
        assert reader.bytes_read == 0

    def test_read_string_invalid_utf8(self):
        with pytest.raises(EncodingError):
            reader_for(b"\xff\xfe").read_string(2)

    def test_skip_bytes(self):
        reader = reader_for(b"0123456789")
        reader.skip_bytes(7)
        assert reader.read_raw(3) == b"789"

    def test_skip_bytes_past_end(self):
        with pytest.raises(TruncatedDataError):
            reader_for(b"0123").skip_bytes(5)

    def test_skip_non_positive_is_noop(self):
        reader = reader_for(b"ab")
        reader.skip_bytes(0)
        reader.skip_bytes(-3)
        assert reader.bytes_read == 0


class TestDomainScalars:
    @pytest.mark.parametrize("degrees", [0.0, 10.1234567, -122.4194155, 179.9999999, -90.0])
    def test_coordinate(self, builder, degrees):
        value = reader_for(builder.coordinate(degrees).bytes()).read_coordinate()
        assert math.isclose(value, degrees, abs_tol=1e-9)

    def test_elevation_sentinel(self, builder):
        assert reader_for(builder.int(-999999999).bytes()).read_elevation() == 0.0

    @pytest.mark.parametrize("raw", [0, 5000, -420, 8848000, 2147483647])
    def test_elevation(self, builder, raw):
        assert reader_for(builder.int(raw).bytes()).read_elevation() == raw / 1000.0

    def test_timestamp_zero_is_absent(self, builder):
        assert reader_for(builder.long(0).bytes()).read_timestamp() is None

    @pytest.mark.parametrize("millis,seconds", [
        (1000000, 1000),
        (1589304133999, 1589304133),
        (999, 0),
        (-1500, -1),
        (-999, 0),
        (-2000, -2),
    ])
    def test_timestamp_truncates_toward_zero(self, builder, millis, seconds):
        assert reader_for(builder.long(millis).bytes()).read_timestamp() == seconds


class TestMetadata:
    def test_all_entry_types(self, builder):
        data = builder.metadata_bag([
            ("visible", True),
            ("count", -42),
            ("ratio", 0.5),
            ("blob", b"\x00\xab\x10"),
            ("name", "Summit"),
        ]).bytes()
        bag = reader_for(data).read_metadata_bag()

        types = [entry.entry_type for entry in bag.entries]
        assert types == [MetadataEntryType.BOOLEAN, MetadataEntryType.LONG, MetadataEntryType.DOUBLE,
                         MetadataEntryType.RAW, MetadataEntryType.STRING]
        assert [entry.value for entry in bag.entries] == [True, -42, 0.5, b"\x00\xab\x10", "Summit"]
        assert bag.get_value_as_string("blob") == "00AB10"

    def test_empty_string_ignores_following_bytes(self, builder):
        data = builder.int(1).string("comment").int(0).int(0).bytes()
        reader = reader_for(data)
        bag = reader.read_metadata_bag()
        assert bag.entries[0].value == ""
        # The following int is still available
        assert reader.read_int() == 0

    def test_unknown_tag(self, builder):
        data = builder.int(1).string("mystery").int(-7).bytes()
        with pytest.raises(UnknownEntryTag) as excinfo:
            reader_for(data).read_metadata_bag()
        assert excinfo.value.tag == -7
        assert excinfo.value.entry_name == "mystery"

    def test_metadata_with_extensions(self, builder):
        data = builder.metadata(
            [("file_desc", "Trip")],
            [("osm", [("name", "Refuge"), ("ele", 2450)]), ("style", [])],
        ).bytes()
        metadata = reader_for(data).read_metadata()
        assert metadata.base.get_value_as_string("file_desc") == "Trip"
        assert [ext.name for ext in metadata.extensions] == ["osm", "style"]
        assert metadata.extensions[0].content.get_value_as_string("ele") == "2450"
        assert metadata.name == "Trip"

    def test_truncated_bag(self, builder):
        data = builder.int(2).string("name").string("A").bytes()
        with pytest.raises(TruncatedDataError):
            reader_for(data).read_metadata_bag()


class TestStructureLists:
    def test_location(self, builder):
        data = builder.location(10.1234567, 20.7654321, 5000, 1000000).bytes()
        location = reader_for(data).read_location()
        assert location.longitude == 10.1234567
        assert location.latitude == 20.7654321
        assert location.elevation == 5.0
        assert location.timestamp == 1000

    def test_location_skips_optional_fields(self, builder):
        data = builder.location(1.0, 2.0, 0, 0, extra=b"\xee" * 10).int(77).bytes()
        reader = reader_for(data)
        reader.read_location()
        assert reader.bytes_read == 4 + 30
        assert reader.read_int() == 77

    def test_location_short_entry_len(self, builder):
        data = builder.int(12).coordinate(1.0).coordinate(2.0).int(0).long(0).bytes()
        reader = reader_for(data)
        reader.read_location()
        assert reader.bytes_read == 24

    def test_waypoints(self, builder):
        data = builder.waypoints([("A", 1.0, 2.0), ("B", 3.0, 4.0, -999999999, 0)]).bytes()
        waypoints = reader_for(data).read_waypoints()
        assert [w.name for w in waypoints] == ["A", "B"]
        assert waypoints[1].elevation == 0.0
        assert waypoints[1].timestamp is None

    def test_segments(self, builder):
        data = builder.segments([[(1.0, 1.0), (2.0, 2.0)], [(3.0, 3.0)]]).bytes()
        segments = reader_for(data).read_segments()
        assert [len(segment.locations) for segment in segments] == [2, 1]

    def test_declared_count_exceeds_data(self, builder):
        data = builder.int(3).location(1.0, 1.0).location(2.0, 2.0).bytes()
        with pytest.raises(TruncatedDataError):
            reader_for(data).read_locations()
        logger.info("Short location list raised TruncatedDataError")

    def test_negative_count_reads_nothing(self, builder):
        assert reader_for(builder.int(-1).bytes()).read_waypoints() == []
