"""Data models for decomposition results, change classification, and text deltas"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema


class ComponentPath(tuple):
    """Hierarchical component key: an ordered tuple of path segments.

    Grouping compares segments, never the joined display text, so a group
    labelled "Destination [1]" is not a prefix of "Destination [10]".
    """

    def __new__(cls, segments=()):
        return super().__new__(cls, (str(s) for s in segments))

    @classmethod
    def of(cls, *segments: str) -> "ComponentPath":
        return cls(segments)

    @property
    def parent(self) -> "ComponentPath":
        return ComponentPath(self[:-1])

    @property
    def name(self) -> str:
        return self[-1] if self else ""

    def child(self, segment: str) -> "ComponentPath":
        return ComponentPath((*self, segment))

    def is_prefix_of(self, other: "ComponentPath") -> bool:
        """True when every segment of self leads other (proper or equal)."""
        return len(self) <= len(other) and tuple(other[:len(self)]) == tuple(self)

    def __str__(self) -> str:
        return "/".join(self)

    def __repr__(self) -> str:
        return f"ComponentPath({tuple(self)!r})"

    @classmethod
    def parse(cls, text: str) -> "ComponentPath":
        """Build a path from its '/'-joined display form (CLI input only)."""
        return cls(s for s in text.split("/") if s)

    @classmethod
    def _validate(cls, value) -> "ComponentPath":
        if isinstance(value, ComponentPath):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, (tuple, list)):
            return cls(value)
        raise ValueError(f"cannot build a ComponentPath from {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source, handler):
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


ROOT = ComponentPath()


class Category(str, Enum):
    """Closed set of component kinds; steps carry their pipeline's category"""
    channel_script = "channel_script"
    connector_configuration = "connector_configuration"
    connector_script = "connector_script"
    connector_plugin = "connector_plugin"
    filter = "filter"
    transformer = "transformer"
    response_transformer = "response_transformer"
    channel_properties = "channel_properties"


class Granularity(str, Enum):
    """Pipeline extraction granularity: one component per step, or per pipeline"""
    step = "step"
    block = "block"


class ChangeType(str, Enum):
    """Classification of a component (or group) between two revisions"""
    unchanged = "unchanged"
    modified = "modified"
    left_only = "left_only"     # only in the older revision (removed)
    right_only = "right_only"   # only in the newer revision (added)

    @property
    def label(self) -> str:
        return _CHANGE_LABELS[self]


_CHANGE_LABELS = {
    ChangeType.unchanged: "",
    ChangeType.modified: "changed",
    ChangeType.left_only: "removed",
    ChangeType.right_only: "added",
}


class Component(BaseModel):
    """One extracted, independently keyed and comparable sub-tree."""
    model_config = ConfigDict(frozen=True)

    key: ComponentPath
    display_name: str
    content: str
    category: Category
    parent_group: ComponentPath


@dataclass(frozen=True)
class DecompositionResult:
    """Ordered component map for one revision plus presentation labels for groups."""
    components: Mapping[ComponentPath, Component]
    group_names: Mapping[ComponentPath, str] = field(default_factory=dict)

    def __getitem__(self, key: ComponentPath) -> Component:
        return self.components[key]

    def __contains__(self, key) -> bool:
        return key in self.components

    def __iter__(self) -> Iterator[ComponentPath]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    def get(self, key: ComponentPath) -> Optional[Component]:
        return self.components.get(key)

    def label_for(self, group: ComponentPath) -> str:
        """Human-readable label for a group path (falls back to its last segment)."""
        return self.group_names.get(group, group.name)


class DeltaType(str, Enum):
    equal = "equal"
    insert = "insert"
    delete = "delete"
    replace = "replace"


@dataclass(frozen=True)
class Delta:
    """One edit operation over half-open ranges [old_start, old_end) / [new_start, new_end)."""
    type: DeltaType
    old_start: int
    old_end: int
    new_start: int
    new_end: int

    @property
    def old_range(self) -> range:
        return range(self.old_start, self.old_end)

    @property
    def new_range(self) -> range:
        return range(self.new_start, self.new_end)


class LineStyle(str, Enum):
    """How the presentation layer should paint one side of a row"""
    normal = "normal"
    deleted = "deleted"
    added = "added"
    changed = "changed"
    padding = "padding"


@dataclass(frozen=True)
class SideLine:
    text: str
    number: Optional[int]               # 1-based; None for alignment padding
    style: LineStyle
    highlights: Optional[tuple[bool, ...]] = None   # per-character intraline mask


@dataclass(frozen=True)
class Row:
    """One aligned row of a side-by-side diff."""
    left: SideLine
    right: SideLine
