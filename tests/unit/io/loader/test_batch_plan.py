"""
Unit tests for BatchPlan materialization and row reduction.
"""

import json
import logging

import pytest

from sqlbridge.infrastructure.schema.core import (
    ColumnSet,
    FieldType,
    PrimitiveKind,
    Record,
    RecordSchema,
)
from sqlbridge.io.loader.batch_plan import (
    BatchPlan,
    RowReductionPolicy,
    policy_from_settings,
)

INT64 = FieldType.of(PrimitiveKind.INT64)
STRING = FieldType.of(PrimitiveKind.STRING)
SCHEMA = RecordSchema("orders")


def record(**values):
    return Record(values=values, schema=SCHEMA)


@pytest.fixture
def columns():
    return ColumnSet.from_fields(
        [("id", INT64, False, None), ("item", STRING, True, None), ("qty", INT64, True, None)],
        key_names=["id"],
    )


@pytest.fixture
def plan(columns):
    return BatchPlan.from_column_set(columns)


@pytest.fixture
def batch():
    return [
        record(id=1, item="apple", qty=3),
        record(id=2, item="pear", qty=None),
        record(id=1, item="apple", qty=5),
    ]


class TestRowReductionPolicy:
    def test_default_keeps_every_row(self, batch):
        assert RowReductionPolicy.DEFAULT.reduce(batch, ["id"]) == batch

    def test_first_row_only(self, batch):
        assert RowReductionPolicy.FIRST_ROW_ONLY.reduce(batch, ["id"]) == batch[:2]

    def test_last_row_only_preserves_order(self, batch):
        assert RowReductionPolicy.LAST_ROW_ONLY.reduce(batch, ["id"]) == batch[1:]

    def test_no_keys_means_no_reduction(self, batch):
        assert RowReductionPolicy.LAST_ROW_ONLY.reduce(batch, []) == batch

    def test_composite_keys(self):
        rows = [record(a=1, b=1), record(a=1, b=2), record(a=1, b=1)]
        assert RowReductionPolicy.FIRST_ROW_ONLY.reduce(rows, ["a", "b"]) == rows[:2]


class TestBatchPlan:
    def test_layout_from_column_set(self, plan):
        assert plan.key_columns == ("id",)
        assert plan.non_key_columns == ("item", "qty")
        assert plan.all_columns == ("id", "item", "qty")
        assert plan.null_string == "null"

    def test_materialize(self, plan, batch):
        rows = plan.materialize(batch)

        assert rows == [["1", "apple", "3"], ["2", "pear", "null"], ["1", "apple", "5"]]

    def test_materialize_with_policy(self, plan, batch):
        rows = plan.materialize(batch, RowReductionPolicy.LAST_ROW_ONLY)
        assert rows == [["2", "pear", "null"], ["1", "apple", "5"]]

    def test_custom_null_string(self, columns):
        plan = BatchPlan.from_column_set(columns, null_string="\\N")
        assert plan.materialize([record(id=1, item=None, qty=None)]) == [["1", "\\N", "\\N"]]

    def test_null_string_from_settings(self, columns, monkeypatch):
        monkeypatch.setenv("SQLBRIDGE_NULL_STRING", "NULL")
        assert BatchPlan.from_column_set(columns).null_string == "NULL"

    def test_column_alternative_is_used(self, columns):
        plan = BatchPlan.from_column_set(columns, column_alternatives={"item": "product"})

        rows = plan.materialize([record(id=1, product="kiwi", qty=1)])

        assert rows == [["1", "kiwi", "1"]]

    def test_missing_column_is_logged_and_nulled(self, plan, caplog):
        caplog.set_level(logging.ERROR)

        rows = plan.materialize([record(id=1, qty=2)])

        assert rows == [["1", "null", "2"]]
        events = [json.loads(r.message) for r in caplog.records if "batch_plan.missing_column" in r.message]
        assert events[0]["column"] == "item"

    def test_restricted_to_target_columns(self, plan):
        restricted = plan.restricted_to(["qty", "id", "note"])

        assert restricted.key_columns == ("id",)
        assert restricted.non_key_columns == ("qty", "note")
        assert restricted.all_columns == ("qty", "id", "note")
        assert restricted.null_string == plan.null_string

    def test_restricted_drops_absent_keys(self, plan):
        restricted = plan.restricted_to(["item"])

        assert restricted.key_columns == ()
        assert restricted.all_columns == ("item",)

    def test_to_dataframe(self, plan, batch):
        df = plan.to_dataframe(batch, RowReductionPolicy.FIRST_ROW_ONLY)

        assert list(df.columns) == ["id", "item", "qty"]
        assert df.values.tolist() == [["1", "apple", "3"], ["2", "pear", "null"]]


class TestPolicyFromSettings:
    def test_default(self):
        assert policy_from_settings() is RowReductionPolicy.DEFAULT

    def test_env_override_is_normalized(self, monkeypatch):
        monkeypatch.setenv("SQLBRIDGE_UPDATE_MODE", " LAST_ROW_ONLY ")
        assert policy_from_settings() is RowReductionPolicy.LAST_ROW_ONLY
