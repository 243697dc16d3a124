from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Status(Enum):
    """
    Final state of a visited file. The value is the progress marker.
    """
    UNCLASSIFIED = "?"
    ERROR = "X"
    SKIPPED = "."
    ALREADY_LINKED = "-"
    IMAGE = "i"
    VIDEO = "v"

    @property
    def marker(self) -> str:
        return self.value

    @property
    def is_loggable(self) -> bool:
        return self in (Status.UNCLASSIFIED, Status.ERROR, Status.SKIPPED)

    @property
    def is_placed(self) -> bool:
        return self in (Status.IMAGE, Status.VIDEO, Status.ALREADY_LINKED)


@dataclass
class FileRecord:
    """
    Represents a file visited during a walk.
    """
    origin: str
    size: int
    name: str
    extension: str              # lower-cased, no leading dot
    status: Status = Status.UNCLASSIFIED
    link: str = ""              # relative to the output root, set on placement

    width: int = 0
    height: int = 0

    def to_dict(self) -> dict:
        return {
            'origin': self.origin,
            'link': self.link,
            'flag': self.status.marker,
            'size': self.size,
            'name': self.name,
            'ext': self.extension,
            'width': self.width,
            'height': self.height,
        }


@dataclass
class ExtractedMeta:
    width: int = 0
    height: int = 0
    time: Optional[datetime] = None     # None means "not found"


# --- Extractor outcomes ---

@dataclass
class Success:
    meta: ExtractedMeta


@dataclass
class Skip:
    """No usable timestamp. Not an error."""
    reason: str = ""
    meta: ExtractedMeta = field(default_factory=ExtractedMeta)


@dataclass
class Failure:
    detail: str


Outcome = Union[Success, Skip, Failure]
