"""
Batch plans for ingesting records into a target table.

A BatchPlan is built once per ingest cycle from the target's ColumnSet and
then turns batches of records into rows of strings, the form bulk loaders
(COPY, external tables, CSV staging) consume. Rows sharing a key can be
reduced to the first or last occurrence before loading.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from sqlbridge.config import get_settings
from sqlbridge.infrastructure.schema.core import ColumnSet, Record
from sqlbridge.utils.logging import get_logger

logger = get_logger(__name__)


class RowReductionPolicy(str, Enum):
    """How rows that share a key within one batch are reduced."""

    DEFAULT = "default"  # keep every row
    FIRST_ROW_ONLY = "first_row_only"
    LAST_ROW_ONLY = "last_row_only"

    def reduce(self, records: Sequence[Record], key_names: Sequence[str]) -> List[Record]:
        """
        Keep one record per key tuple, preserving relative order.

        With ids 1, 2, 1 FIRST_ROW_ONLY keeps the first two records and
        LAST_ROW_ONLY keeps the second and third. An empty key list means
        nothing is reduced.
        """
        if self is RowReductionPolicy.DEFAULT or not key_names:
            return list(records)

        ordered = records if self is RowReductionPolicy.FIRST_ROW_ONLY else records[::-1]
        seen = set()
        kept: List[Record] = []
        for record in ordered:
            key = tuple(record.get(name) for name in key_names)
            if key in seen:
                continue
            seen.add(key)
            kept.append(record)

        if self is RowReductionPolicy.LAST_ROW_ONLY:
            kept.reverse()
        return kept


@dataclass(frozen=True)
class BatchPlan:
    """
    Immutable column layout of one ingest cycle.

    Attributes:
        key_columns: Key column names in declaration order
        non_key_columns: Non-key column names in declaration order
        all_columns: Row layout of materialized batches
        null_string: Text written for missing or NULL values
        column_alternatives: Fallback record field per column name
    """

    key_columns: Tuple[str, ...]
    non_key_columns: Tuple[str, ...]
    all_columns: Tuple[str, ...]
    null_string: str = "null"
    column_alternatives: Mapping[str, str] = field(default_factory=dict, hash=False)

    @classmethod
    def from_column_set(
        cls,
        columns: ColumnSet,
        null_string: Optional[str] = None,
        column_alternatives: Optional[Mapping[str, str]] = None,
    ) -> "BatchPlan":
        return cls(
            key_columns=tuple(c.name for c in columns.key_columns),
            non_key_columns=tuple(c.name for c in columns.non_key_columns),
            all_columns=tuple(columns.names),
            null_string=null_string if null_string is not None else get_settings().null_string,
            column_alternatives=dict(column_alternatives or {}),
        )

    def restricted_to(self, target_columns: Sequence[str]) -> "BatchPlan":
        """
        Plan whose layout follows the target table's columns.

        Keys missing from the target are dropped; every other target column
        is a non-key column.
        """
        keys = tuple(k for k in self.key_columns if k in target_columns)
        plan = replace(
            self,
            key_columns=keys,
            non_key_columns=tuple(c for c in target_columns if c not in keys),
            all_columns=tuple(target_columns),
        )
        logger.info(
            "batch_plan.restricted",
            key_columns=list(plan.key_columns),
            column_count=len(plan.all_columns),
        )
        return plan

    def _value(self, record: Record, column: str) -> str:
        if column in record.values:
            value = record.values[column]
        else:
            alternative = self.column_alternatives.get(column)
            if alternative is not None and alternative in record.values:
                value = record.values[alternative]
            else:
                value = None
                logger.error("batch_plan.missing_column", column=column, alternative=alternative)
        return self.null_string if value is None else str(value)

    def materialize(
        self,
        records: Iterable[Record],
        policy: RowReductionPolicy = RowReductionPolicy.DEFAULT,
    ) -> List[List[str]]:
        """Reduce ``records`` with ``policy`` and lay them out as rows of strings."""
        batch = list(records)
        reduced = policy.reduce(batch, self.key_columns)
        rows = [[self._value(r, c) for c in self.all_columns] for r in reduced]
        logger.info(
            "batch_plan.materialized",
            policy=policy.value,
            records=len(batch),
            rows=len(rows),
            columns=len(self.all_columns),
        )
        return rows

    def to_dataframe(
        self,
        records: Iterable[Record],
        policy: RowReductionPolicy = RowReductionPolicy.DEFAULT,
    ) -> pd.DataFrame:
        """Materialize ``records`` into a string-typed DataFrame in plan column order."""
        rows = self.materialize(records, policy)
        return pd.DataFrame(rows, columns=list(self.all_columns), dtype=str)


def policy_from_settings() -> RowReductionPolicy:
    return RowReductionPolicy(get_settings().update_mode)


__all__ = [
    "BatchPlan",
    "RowReductionPolicy",
    "policy_from_settings",
]
