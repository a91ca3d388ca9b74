"""Data models for SRT documents, translation batches and trigger events."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class LineRole(Enum):
    """Role of a single line inside an SRT file."""
    INDEX = "index"
    TIMESTAMP = "timestamp"
    BLANK = "blank"
    TEXT = "text"


@dataclass(frozen=True)
class Line:
    """One line of the original file and its role."""

    position: int
    role: LineRole
    text: str

    @property
    def is_translatable(self) -> bool:
        return self.role is LineRole.TEXT


@dataclass(frozen=True)
class RequestItem:
    """A translatable line: its position in the document and its text."""
    position: int
    text: str


@dataclass
class ParsedDocument:
    """Classified lines of an SRT file, one entry per input line."""

    lines: List[Line] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __getitem__(self, position: int) -> Line:
        return self.lines[position]

    def translation_request(self) -> List[RequestItem]:
        """Return every text line as a RequestItem, in document order."""
        return [
            RequestItem(line.position, line.text)
            for line in self.lines
            if line.is_translatable
        ]

    def count(self, role: LineRole) -> int:
        return sum(1 for line in self.lines if line.role is role)


@dataclass(frozen=True)
class Batch:
    """A contiguous slice of the translation request."""

    index: int
    items: Tuple[RequestItem, ...]

    @property
    def texts(self) -> List[str]:
        return [item.text for item in self.items]

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class StorageEvent:
    """Object change notification delivered by the storage trigger."""

    bucket: str
    name: Optional[str] = None
    resource_state: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageEvent":
        """Build an event from the raw payload (camelCase keys)."""
        return cls(
            bucket=data.get("bucket", ""),
            name=data.get("name") or None,
            resource_state=data.get("resourceState"),
            content_type=data.get("contentType"),
        )

    @property
    def is_deletion(self) -> bool:
        return self.resource_state == "not_exists"

    @property
    def is_file(self) -> bool:
        return bool(self.name)
