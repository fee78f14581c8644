###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""
Unit tests for the Trace adapter and the semantic typing of events.
"""

import gzip
import json
from typing import Dict

import pytest

from TraceStitch.TraceModel.trace_model import Trace
from TraceStitch.TraceModel.xplane_schema import HostEventType, StatType
from TraceStitch.util import DataLoader


def _mk_event(
    name: str, ts: float, dur: float, pid: int = 1, tid: int = 1, cat: str = "cpu_op", args: Dict = None
) -> Dict:
    """Helper to create a complete trace event."""
    return {
        "ph": "X",
        "cat": cat,
        "name": name,
        "pid": pid,
        "tid": tid,
        "ts": ts,
        "dur": dur,
        "args": args or {},
    }


class TestValidation:
    def test_rejects_non_list(self):
        with pytest.raises(ValueError, match="list of trace events"):
            Trace({"traceEvents": []})

    def test_rejects_non_dict_event(self):
        with pytest.raises(ValueError, match="not a dict"):
            Trace([_mk_event("SessionRun", 0, 10), "oops"])

    def test_rejects_missing_timestamp(self):
        event = _mk_event("SessionRun", 0, 10)
        del event["ts"]
        with pytest.raises(ValueError, match="'ts'"):
            Trace([event])

    def test_rejects_boolean_duration(self):
        with pytest.raises(ValueError, match="'dur'"):
            Trace([_mk_event("SessionRun", 0, True)])

    def test_rejects_negative_duration(self):
        with pytest.raises(ValueError, match="negative duration"):
            Trace([_mk_event("SessionRun", 0, -1)])

    def test_rejects_missing_tid(self):
        event = _mk_event("SessionRun", 0, 10)
        del event["tid"]
        with pytest.raises(ValueError, match="'tid'"):
            Trace([event])

    def test_non_complete_events_are_not_validated_or_kept(self):
        metadata = {"ph": "M", "name": "thread_name", "pid": 1, "tid": 1, "args": {"name": "main"}}
        flow = {"ph": "s", "id": 5, "pid": 1, "tid": 1, "ts": 3, "cat": "ac2g", "name": "ac2g"}
        trace = Trace([metadata, _mk_event("SessionRun", 0, 10), flow])
        assert [event["name"] for event in trace.events] == ["SessionRun"]

    def test_empty_trace_warns(self):
        with pytest.warns(UserWarning, match="empty"):
            trace = Trace([])
        assert trace.get_timelines() == {}


class TestTimelines:
    def test_events_split_by_pid_tid_in_input_order(self):
        events = [
            _mk_event("a", 0, 10, tid=1),
            _mk_event("b", 5, 10, tid=2),
            _mk_event("c", 20, 10, tid=1),
            _mk_event("d", 1, 1, pid=2, tid=1),
        ]
        timelines = Trace(events).get_timelines()
        assert list(timelines) == [(1, 1), (1, 2), (2, 1)]
        assert [e["name"] for e in timelines[(1, 1)]] == ["a", "c"]

    def test_stats_are_written_back_to_the_callers_event(self):
        event = _mk_event("SessionRun", 0, 10)
        del event["args"]
        Trace([event])
        Trace.set_stat(event, StatType.GROUP_ID, 3)
        assert event["args"]["group_id"] == 3
        assert Trace.get_int_stat(event, StatType.GROUP_ID) == 3

    def test_null_args_read_as_no_stats(self):
        event = _mk_event("SessionRun", 0, 10)
        event["args"] = None
        trace = Trace([event])
        assert Trace.get_stat(event, StatType.STEP_ID) is None
        assert Trace.get_event_type(event) == HostEventType.SESSION_RUN
        Trace.set_stat(event, StatType.GROUP_ID, 0)
        assert event["args"] == {"group_id": 0}
        assert trace.events == [event]

    def test_int_stat_ignores_non_numeric_values(self):
        event = _mk_event("SessionRun", 0, 10, args={"step_id": "abc", "iter_num": "4"})
        assert Trace.get_int_stat(event, StatType.STEP_ID) is None
        assert Trace.get_int_stat(event, StatType.ITER_NUM) == 4


class TestEventTypes:
    @pytest.mark.parametrize(
        "event, expected",
        [
            (_mk_event("SessionRun", 0, 10), HostEventType.SESSION_RUN),
            (_mk_event("ExecutorState::Process", 0, 10), HostEventType.EXECUTOR_STATE_PROCESS),
            (_mk_event("cudaLaunchKernel", 0, 10, cat="cuda_runtime", args={"correlation_id": 1}),
             HostEventType.KERNEL_LAUNCH),
            (_mk_event("gemm", 0, 10, pid=0, tid=7, cat="kernel", args={"correlation_id": 1}),
             HostEventType.KERNEL_EXECUTE),
            (_mk_event("dense/MatMul:MatMul", 0, 10), HostEventType.TF_OP_RUN),
            (_mk_event("some_python_function", 0, 10), HostEventType.UNKNOWN_HOST_EVENT_TYPE),
        ],
    )
    def test_event_type(self, event, expected):
        assert Trace.get_event_type(event) == expected


class TestLoading:
    def test_from_json_file(self, tmp_path):
        path = tmp_path / "trace.json"
        path.write_text(json.dumps({"traceEvents": [_mk_event("SessionRun", 0, 10)]}))
        trace = Trace.from_file(str(path))
        assert len(trace.events) == 1

    def test_from_json_gz_file(self, tmp_path):
        path = tmp_path / "trace.json.gz"
        with gzip.open(path, "wt") as fout:
            json.dump({"traceEvents": [_mk_event("SessionRun", 0, 10), _mk_event("FunctionRun", 1, 5)]}, fout)
        trace = Trace.from_file(str(path))
        assert len(trace.events) == 2

    def test_file_without_trace_events_fails(self, tmp_path):
        path = tmp_path / "trace.json"
        path.write_text(json.dumps({"displayTimeUnit": "ns"}))
        with pytest.raises(ValueError):
            Trace.from_file(str(path))

    def test_unknown_file_type(self, tmp_path):
        with pytest.raises(ValueError):
            DataLoader.load_data(str(tmp_path / "trace.pb"))
