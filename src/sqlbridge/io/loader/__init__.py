"""Batch materialization for bulk loading."""

from .batch_plan import BatchPlan, RowReductionPolicy, policy_from_settings

__all__ = ["BatchPlan", "RowReductionPolicy", "policy_from_settings"]
