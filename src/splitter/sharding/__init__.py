"""Timing-based test sharding across parallel CI nodes."""

from splitter.sharding.partitioner import (
    Bucket,
    ShardPlan,
    partition_files,
    select_bucket,
    validate_shard_request,
)
from splitter.sharding.shard_result import read_shard_plan, shard_plan_to_dict, write_shard_plan
from splitter.sharding.splitter import normalize_input_files, plan_shards, read_input_files
from splitter.sharding.timing import TestRecord, aggregate_file_timings, reconcile_timings

__all__ = [
    "Bucket",
    "ShardPlan",
    "TestRecord",
    "aggregate_file_timings",
    "normalize_input_files",
    "partition_files",
    "plan_shards",
    "read_input_files",
    "read_shard_plan",
    "reconcile_timings",
    "select_bucket",
    "shard_plan_to_dict",
    "validate_shard_request",
    "write_shard_plan",
]
