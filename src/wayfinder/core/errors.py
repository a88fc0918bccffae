"""
Exceptions raised while decoding AlpineQuest files and posting artifacts.
"""

from typing import Optional


class DecodeError(Exception):
    """Base class for errors that end decoding of the current file"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source

    def __str__(self):
        message = super().__str__()
        if self.source:
            return f"{message} ({self.source})"
        return message


class TruncatedDataError(DecodeError):
    """The byte source ran out of data or failed while reading"""


class EncodingError(DecodeError):
    """A string field did not contain valid UTF-8"""


class UnknownEntryTag(DecodeError):
    """A metadata entry used a negative type tag that is not defined"""

    def __init__(self, tag: int, entry_name: str, source: Optional[str] = None):
        super().__init__(f"Unknown metadata entry tag {tag} for entry '{entry_name}'", source)
        self.tag = tag
        self.entry_name = entry_name


class SinkPostingError(Exception):
    """An artifact record could not be written to its sink"""
