"""Canonical schema types for SQLBridge.

A database-independent description of record fields: nine primitive kinds
plus logical overlays (decimal, date, time, timestamp). Dialects dispatch on
the logical name first and fall back to the primitive kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

# Sentinels distinct from zero: a driver that reports scale 0 means "no
# fractional digits", not "unknown".
SCALE_UNSET = -127
PRECISION_UNSET = -1


class PrimitiveKind(Enum):
    """Primitive wire kinds every dialect must map."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"


class LogicalType(str, Enum):
    """Logical type names used for dialect dispatch."""

    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    NANO_TIMESTAMP_STRING = "nano_timestamp_string"


@dataclass(frozen=True)
class FieldType:
    """A primitive kind with an optional logical overlay."""

    kind: PrimitiveKind
    logical_name: Optional[str] = None
    precision: int = PRECISION_UNSET
    scale: int = SCALE_UNSET

    @classmethod
    def of(cls, kind: PrimitiveKind) -> "FieldType":
        return cls(kind)

    @classmethod
    def decimal(cls, scale: int = SCALE_UNSET, precision: int = PRECISION_UNSET) -> "FieldType":
        return cls(PrimitiveKind.BYTES, LogicalType.DECIMAL.value, precision, scale)

    @classmethod
    def date(cls) -> "FieldType":
        return cls(PrimitiveKind.INT32, LogicalType.DATE.value)

    @classmethod
    def time(cls) -> "FieldType":
        return cls(PrimitiveKind.INT32, LogicalType.TIME.value)

    @classmethod
    def timestamp(cls) -> "FieldType":
        return cls(PrimitiveKind.INT64, LogicalType.TIMESTAMP.value)

    @classmethod
    def nano_timestamp_string(cls) -> "FieldType":
        return cls(PrimitiveKind.STRING, LogicalType.NANO_TIMESTAMP_STRING.value)

    @property
    def is_logical(self) -> bool:
        return self.logical_name is not None


@dataclass(frozen=True)
class ColumnSpec:
    """Definition of a single column derived from a record schema snapshot."""

    name: str
    field_type: FieldType
    is_primary_key: bool = False
    is_optional: bool = False
    default: Any = None

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class ColumnSet:
    """Ordered columns of one table, partitioned into key and non-key columns."""

    columns: Tuple[ColumnSpec, ...]

    def __post_init__(self) -> None:
        names = [c.name for c in self.columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate column names: {duplicates}")

    @classmethod
    def from_fields(
        cls,
        fields: Iterable[Tuple[str, FieldType, bool, Any]],
        key_names: Sequence[str] = (),
    ) -> "ColumnSet":
        """Build a column set from (name, type, is_optional, default) tuples.

        Args:
            fields: Field tuples in schema declaration order
            key_names: Names of the key fields, all of which must be present

        Raises:
            ValueError: If a key name is not among the fields
        """
        field_list = list(fields)
        known = {name for name, _, _, _ in field_list}
        missing = [k for k in key_names if k not in known]
        if missing:
            raise ValueError(f"Key fields not present in schema: {missing}")

        keys = set(key_names)
        return cls(
            tuple(
                ColumnSpec(
                    name=name,
                    field_type=field_type,
                    is_primary_key=name in keys,
                    is_optional=is_optional,
                    default=default,
                )
                for name, field_type, is_optional, default in field_list
            )
        )

    @property
    def key_columns(self) -> List[ColumnSpec]:
        return [c for c in self.columns if c.is_primary_key]

    @property
    def non_key_columns(self) -> List[ColumnSpec]:
        return [c for c in self.columns if not c.is_primary_key]

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class RecordSchema:
    """Schema snapshot of a result set, as observed at read time."""

    name: Optional[str]
    fields: Tuple[ColumnSpec, ...] = field(default_factory=tuple)

    def get_field(self, name: str) -> ColumnSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"Field '{name}' not in schema {self.name!r}")

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class Record:
    """One row emitted by a querier together with its schema snapshot."""

    values: Mapping[str, Any]
    schema: RecordSchema

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


__all__ = [
    "SCALE_UNSET",
    "PRECISION_UNSET",
    "PrimitiveKind",
    "LogicalType",
    "FieldType",
    "ColumnSpec",
    "ColumnSet",
    "RecordSchema",
    "Record",
]
