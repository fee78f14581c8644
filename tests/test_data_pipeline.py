###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""
Unit tests for connecting data pipeline (tf.data) producer and consumer
iterator events, on their own and after grouping.
"""

from typing import Dict

from TraceStitch.EventGroups.connect_info import GroupingConfig
from TraceStitch.EventGroups.group_events import connect_data_pipeline_events, group_events
from TraceStitch.TraceModel.xplane_schema import ContextType, HostEventType


def _mk_event(name: str, ts: float, dur: float, pid: int = 1, tid: int = 1, args: Dict = None) -> Dict:
    return {
        "ph": "X",
        "cat": "cpu_op",
        "name": name,
        "pid": pid,
        "tid": tid,
        "ts": ts,
        "dur": dur,
        "args": args or {},
    }


def _mk_pipeline_trace():
    return [
        _mk_event("SessionRun", 0, 100, tid=1),
        _mk_event("Iterator::Prefetch", 10, 20, tid=1, args={"_ct": int(ContextType.TF_DATA), "_c": 123}),
        _mk_event("Iterator::Prefetch::Produce", 5, 10, tid=2, args={"_pt": int(ContextType.TF_DATA), "_p": 123}),
        _mk_event("Iterator::Map", 6, 5, tid=2),
        _mk_event("Launch", 200, 10, tid=3, args={"_pt": int(ContextType.GENERIC), "_p": 5}),
        _mk_event("Execute", 300, 10, tid=4, args={"_ct": int(ContextType.GENERIC), "_c": 5}),
    ]


class TestDataPipeline:
    def test_standalone_connects_only_data_pipeline_contexts(self):
        forest = connect_data_pipeline_events(_mk_pipeline_trace())
        session_run, consumer, producer, map_op, launch, execute = forest.nodes
        assert consumer.parents == [session_run.uid, producer.uid]
        assert map_op.parents == [producer.uid]
        assert execute.parents == []
        assert forest.get_group_metadata_map() == {}
        assert "connect_inter_thread" not in forest.completed_stages

    def test_after_grouping_adds_edges_without_regrouping(self):
        events = _mk_pipeline_trace()
        forest = group_events(events, [], [HostEventType.SESSION_RUN])
        session_run, consumer, producer, map_op, launch, execute = forest.nodes

        # the generic context is connected by the grouping pipeline itself
        assert execute.parents == [launch.uid]
        assert consumer.parents == [session_run.uid]
        assert producer.group_id is None

        forest.process_data_pipeline_events()
        assert consumer.parents == [session_run.uid, producer.uid]
        assert producer.children == [map_op.uid, consumer.uid]
        assert producer.group_id is None
        assert list(forest.get_group_metadata_map()) == [0]

    def test_context_kind_is_configurable(self):
        config = GroupingConfig(data_pipeline_context_type=ContextType.GENERIC)
        forest = connect_data_pipeline_events(_mk_pipeline_trace(), config=config)
        session_run, consumer, producer, map_op, launch, execute = forest.nodes
        assert execute.parents == [launch.uid]
        assert consumer.parents == [session_run.uid]
