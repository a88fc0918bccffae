"""
Artifact records created from decoded AlpineQuest data.

The synthesis functions are pure; post_records() hands the results to a sink
and isolates any failure to the record that caused it.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .errors import SinkPostingError
from .structures import Location, Segment, Waypoint

logger = logging.getLogger(__name__)

PROGRAM_NAME = "AlpineQuest"
MODULE_NAME = "AlpineQuest Parser"


@dataclass
class BookmarkRecord:
    """A single GPS bookmark"""
    latitude: float
    longitude: float
    elevation: float
    timestamp: Optional[int] = None
    name: Optional[str] = None
    source: Optional[str] = None
    program_name: str = PROGRAM_NAME

    kind = "bookmark"


@dataclass
class TrackPoint:
    latitude: float
    longitude: float
    elevation: float
    timestamp: Optional[int] = None


@dataclass
class TrackRecord:
    """An ordered list of recorded points"""
    name: Optional[str]
    points: List[TrackPoint] = field(default_factory=list)
    source: Optional[str] = None
    program_name: str = PROGRAM_NAME

    kind = "track"


@dataclass
class RouteWaypoint:
    latitude: float
    longitude: float
    elevation: float
    name: Optional[str] = None


@dataclass
class RouteRecord:
    """A planned route made of waypoints"""
    name: Optional[str]
    timestamp: Optional[int] = None
    waypoints: List[RouteWaypoint] = field(default_factory=list)
    source: Optional[str] = None
    program_name: str = PROGRAM_NAME

    kind = "route"


@dataclass
class AreaRecord:
    """A polygon outlined by its points"""
    name: Optional[str]
    points: List[TrackPoint] = field(default_factory=list)
    source: Optional[str] = None
    program_name: str = PROGRAM_NAME

    kind = "area"


ArtifactRecord = Union[BookmarkRecord, TrackRecord, RouteRecord, AreaRecord]


def _track_point(location: Location) -> TrackPoint:
    return TrackPoint(location.latitude, location.longitude, location.elevation, location.timestamp)


def bookmark_from_waypoint(waypoint: Waypoint, source: Optional[str] = None) -> BookmarkRecord:
    return BookmarkRecord(
        latitude=waypoint.latitude,
        longitude=waypoint.longitude,
        elevation=waypoint.elevation,
        timestamp=waypoint.timestamp,
        name=waypoint.name,
        source=source,
    )


def bookmarks_from_waypoints(waypoints: Iterable[Waypoint], source: Optional[str] = None) -> List[BookmarkRecord]:
    return [bookmark_from_waypoint(waypoint, source) for waypoint in waypoints]


def track_from_segments(segments: Iterable[Segment], name: Optional[str],
                        source: Optional[str] = None) -> Optional[TrackRecord]:
    """
    Join the segments of a track into a single track record.

    Segment boundaries are not kept. Returns None if there are no points.
    """
    points = [_track_point(location) for segment in segments for location in segment.locations]
    if not points:
        logger.debug(f"No track points found in {source}, skipping track")
        return None
    return TrackRecord(name=name, points=points, source=source)


def route_from_waypoints(waypoints: List[Waypoint], name: Optional[str], timestamp: Optional[int],
                         source: Optional[str] = None) -> Optional[RouteRecord]:
    """
    Create a route record from its waypoints.

    If the route has no timestamp of its own, the first waypoint timestamp
    is used. Returns None if there are no waypoints.
    """
    if not waypoints:
        logger.debug(f"No route waypoints found in {source}, skipping route")
        return None

    if timestamp is None:
        timestamp = next((waypoint.timestamp for waypoint in waypoints
                          if waypoint.timestamp is not None), None)

    route_waypoints = [
        RouteWaypoint(waypoint.latitude, waypoint.longitude, waypoint.elevation, waypoint.name)
        for waypoint in waypoints
    ]
    return RouteRecord(name=name, timestamp=timestamp, waypoints=route_waypoints, source=source)


def area_from_locations(locations: List[Location], name: Optional[str],
                        source: Optional[str] = None) -> Optional[AreaRecord]:
    if not locations:
        logger.debug(f"No area points found in {source}, skipping area")
        return None
    return AreaRecord(name=name, points=[_track_point(location) for location in locations], source=source)


def post_records(records: Iterable[ArtifactRecord], sink) -> int:
    """
    Post records to a sink one at a time.

    A record that cannot be posted is logged and skipped.

    Returns:
        Number of records the sink accepted
    """
    posted = 0
    for record in records:
        try:
            sink.post(record)
            posted += 1
        except SinkPostingError as e:
            logger.warning(f"Failed to post {record.kind} artifact from {record.source}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error posting {record.kind} artifact from {record.source}: {e}",
                         exc_info=True)
    return posted
