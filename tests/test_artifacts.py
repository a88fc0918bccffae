import logging

from wayfinder.core.artifacts import (
    PROGRAM_NAME, BookmarkRecord, area_from_locations, bookmark_from_waypoint, post_records,
    route_from_waypoints, track_from_segments,
)
from wayfinder.core.errors import SinkPostingError
from wayfinder.core.sink import MemorySink
from wayfinder.core.structures import (
    Location, Metadata, MetadataBag, MetadataEntry, MetadataEntryType, Segment, Waypoint,
)


def make_waypoint(name, lon, lat, elevation=0.0, timestamp=None):
    entries = [MetadataEntry("name", MetadataEntryType.STRING, name)] if name else []
    return Waypoint(Metadata(MetadataBag(entries)), Location(lon, lat, elevation, timestamp))


def make_segment(*points):
    return Segment(Metadata(), [Location(lon, lat, 0.0, None) for lon, lat in points])


class RejectingSink(MemorySink):
    """Rejects records whose name is in `rejected`"""

    def __init__(self, rejected, error=SinkPostingError):
        super().__init__()
        self.rejected = rejected
        self.error = error

    def post(self, record):
        if record.name in self.rejected:
            raise self.error(f"rejected {record.name}")
        super().post(record)


class TestSynthesis:
    def test_bookmark_from_waypoint(self):
        bookmark = bookmark_from_waypoint(make_waypoint("Peak", 7.5, 46.5, 3000.0, 1700000000), "a.wpt")
        assert bookmark == BookmarkRecord(latitude=46.5, longitude=7.5, elevation=3000.0,
                                          timestamp=1700000000, name="Peak", source="a.wpt")
        assert bookmark.program_name == PROGRAM_NAME

    def test_track_keeps_point_order_across_segments(self):
        segments = [make_segment((1, 1), (2, 2)), make_segment(), make_segment((3, 3))]
        track = track_from_segments(segments, "T", "t.trk")
        assert [p.longitude for p in track.points] == [1, 2, 3]

    def test_track_without_points(self):
        assert track_from_segments([make_segment(), make_segment()], "T") is None
        assert track_from_segments([], "T") is None

    def test_route_prefers_its_own_timestamp(self):
        waypoints = [make_waypoint("A", 1, 1, timestamp=50)]
        assert route_from_waypoints(waypoints, "R", 10).timestamp == 10

    def test_route_without_any_timestamp(self):
        waypoints = [make_waypoint("A", 1, 1), make_waypoint("B", 2, 2)]
        route = route_from_waypoints(waypoints, "R", None)
        assert route.timestamp is None
        assert [w.name for w in route.waypoints] == ["A", "B"]

    def test_route_without_waypoints(self):
        assert route_from_waypoints([], "R", 10) is None

    def test_area(self):
        area = area_from_locations([Location(1, 2, 3.0, None)], "Field", "f.are")
        assert area.kind == "area"
        assert area.points[0].elevation == 3.0
        assert area_from_locations([], "Field") is None


class TestPostRecords:
    def test_all_records_posted(self):
        sink = MemorySink()
        records = [bookmark_from_waypoint(make_waypoint(name, 1, 1)) for name in ("A", "B")]
        assert post_records(records, sink) == 2
        assert sink.records == records

    def test_failed_record_does_not_stop_others(self, caplog):
        sink = RejectingSink({"B"})
        records = [bookmark_from_waypoint(make_waypoint(name, 1, 1)) for name in ("A", "B", "C")]

        with caplog.at_level(logging.WARNING):
            assert post_records(records, sink) == 2

        assert [record.name for record in sink.records] == ["A", "C"]
        assert "rejected B" in caplog.text

    def test_unexpected_sink_error_is_contained(self, caplog):
        sink = RejectingSink({"A"}, error=RuntimeError)
        records = [bookmark_from_waypoint(make_waypoint(name, 1, 1)) for name in ("A", "B")]

        with caplog.at_level(logging.ERROR):
            assert post_records(records, sink) == 1

        assert "Unexpected error" in caplog.text
