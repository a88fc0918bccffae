"""
Objects that make up AlpineQuest files.

Every structure here is produced by AlpineQuestReader while decoding a single
file and is discarded once artifacts have been created from it.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

MetadataValue = Union[bool, int, float, bytes, str]


class MetadataEntryType(IntEnum):
    """Types of data stored in a metadata entry.

    On disk the STRING type is represented by any non-negative value, which
    is also the length of the string.
    """
    BOOLEAN = -1
    LONG = -2
    DOUBLE = -3
    RAW = -4
    STRING = 0


_PAYLOAD_TYPES = {
    MetadataEntryType.BOOLEAN: bool,
    MetadataEntryType.LONG: int,
    MetadataEntryType.DOUBLE: float,
    MetadataEntryType.RAW: bytes,
    MetadataEntryType.STRING: str,
}


@dataclass(frozen=True)
class Location:
    """A single recorded position"""
    longitude: float
    latitude: float
    elevation: float
    timestamp: Optional[int] = None  # epoch seconds


@dataclass(frozen=True)
class MetadataEntry:
    """A typed name/value pair"""
    name: str
    entry_type: MetadataEntryType
    value: MetadataValue

    def __post_init__(self):
        expected = _PAYLOAD_TYPES[self.entry_type]
        # bool is a subclass of int, so LONG needs an explicit check
        if not isinstance(self.value, expected) or \
                (expected is int and isinstance(self.value, bool)):
            raise TypeError(f"Metadata entry '{self.name}' of type {self.entry_type.name} "
                            f"cannot hold {type(self.value).__name__}")

    def as_string(self) -> str:
        """Get the value as a string."""
        if self.entry_type == MetadataEntryType.BOOLEAN:
            return "true" if self.value else "false"
        if self.entry_type == MetadataEntryType.LONG:
            return str(self.value)
        if self.entry_type == MetadataEntryType.DOUBLE:
            return repr(self.value)
        if self.entry_type == MetadataEntryType.RAW:
            return self.value.hex().upper()
        return self.value


@dataclass
class MetadataBag:
    """Ordered list of metadata entries"""
    entries: List[MetadataEntry] = field(default_factory=list)

    def get_value_as_string(self, name: str) -> Optional[str]:
        """Look for a given field and return its value, or None if not present."""
        for entry in self.entries:
            if entry.name == name:
                return entry.as_string()
        return None

    def __len__(self):
        return len(self.entries)


@dataclass
class MetadataExtension:
    """A named block of extended metadata"""
    name: str
    content: MetadataBag


@dataclass
class Metadata:
    """Base metadata plus any extended metadata blocks"""
    base: MetadataBag = field(default_factory=MetadataBag)
    extensions: List[MetadataExtension] = field(default_factory=list)

    @property
    def name(self) -> Optional[str]:
        return resolve_metadata_name(self)


def resolve_metadata_name(metadata: Metadata) -> Optional[str]:
    """
    Find the display name stored in a Metadata object.

    Checks the "name" field of the base bag, then its "file_desc" field.
    Extended metadata blocks are never consulted.

    Returns:
        The name, or None if neither field is present
    """
    name = metadata.base.get_value_as_string("name")
    if name is not None:
        return name
    return metadata.base.get_value_as_string("file_desc")


@dataclass
class Waypoint:
    """A single named point of interest"""
    metadata: Metadata
    location: Location

    @property
    def longitude(self) -> float:
        return self.location.longitude

    @property
    def latitude(self) -> float:
        return self.location.latitude

    @property
    def elevation(self) -> float:
        return self.location.elevation

    @property
    def timestamp(self) -> Optional[int]:
        return self.location.timestamp

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name


@dataclass
class Segment:
    """A contiguous piece of a recorded track"""
    metadata: Metadata
    locations: List[Location] = field(default_factory=list)
