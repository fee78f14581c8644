###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import logging
import numbers
import warnings
from typing import Any, Dict, List, Optional, Tuple

from ..util import DataLoader, TraceEventUtils
from .xplane_schema import HostEventType, StatType, find_host_event_type, is_tf_op_name

logger = logging.getLogger(__name__)

TraceKeys = TraceEventUtils.TraceKeys


class Trace:
    """
    Thin adapter over a list of Google Trace Event dicts.

    Complete ('X') events are split into timelines keyed by (pid, tid). Stats are
    the entries of an event's 'args' dict and are written back in place, so the
    caller's event dicts end up carrying the grouping annotations.
    """

    @staticmethod
    def from_file(profile_filepath: str) -> "Trace":
        data = DataLoader.load_data(profile_filepath)
        if isinstance(data, dict):
            data = data.get("traceEvents")
        return Trace(data)

    def __init__(self, events: List[dict]):
        self._validate(events)
        self.events = [event for event in events if TraceEventUtils.is_complete_event(event)]
        if not self.events:
            warnings.warn("Input list of events is empty. Nothing will be grouped.", UserWarning)
        self.timelines = TraceEventUtils.split_by_timeline(self.events)
        logger.debug(f"Trace with {len(self.events)} events on {len(self.timelines)} timelines")

    @staticmethod
    def _validate(events) -> None:
        if not isinstance(events, list):
            raise ValueError(f"Expected a list of trace events, got {type(events).__name__}")
        for i, event in enumerate(events):
            if not isinstance(event, dict):
                raise ValueError(f"Trace event #{i} is not a dict: {event!r}")
            if not TraceEventUtils.is_complete_event(event):
                continue
            for key in (TraceKeys.TimeStamp, TraceKeys.Duration):
                value = event.get(key)
                if isinstance(value, bool) or not isinstance(value, numbers.Real):
                    raise ValueError(f"Trace event #{i} ({event.get('name')}) has no numeric '{key}'")
            if event[TraceKeys.Duration] < 0:
                raise ValueError(f"Trace event #{i} ({event.get('name')}) has a negative duration")
            for key in (TraceKeys.PID, TraceKeys.TID):
                if key not in event:
                    raise ValueError(f"Trace event #{i} ({event.get('name')}) has no '{key}'")

    def get_timelines(self) -> Dict[Tuple, List[dict]]:
        return self.timelines

    @staticmethod
    def get_start(event: dict):
        return event[TraceKeys.TimeStamp]

    @staticmethod
    def get_duration(event: dict):
        return event[TraceKeys.Duration]

    @staticmethod
    def get_end(event: dict):
        return event[TraceKeys.TimeStamp] + event[TraceKeys.Duration]

    @staticmethod
    def get_name(event: dict) -> str:
        return event.get(TraceKeys.Name, '')

    @staticmethod
    def get_stat(event: dict, stat_type: StatType) -> Optional[Any]:
        return (event.get(TraceKeys.Args) or {}).get(stat_type)

    @staticmethod
    def get_int_stat(event: dict, stat_type: StatType) -> Optional[int]:
        value = Trace.get_stat(event, stat_type)
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-integer stat {stat_type}={value!r} on {Trace.get_name(event)}")
            return None

    @staticmethod
    def set_stat(event: dict, stat_type: StatType, value) -> None:
        if event.get(TraceKeys.Args) is None:
            event[TraceKeys.Args] = {}
        event[TraceKeys.Args][stat_type] = value

    @staticmethod
    def get_event_type(event: dict) -> HostEventType:
        event_type = find_host_event_type(Trace.get_name(event))
        if event_type is not None:
            return event_type
        # Kernel launches and executions are only recognizable by their correlation id
        if Trace.get_stat(event, StatType.CORRELATION_ID) is not None:
            if TraceEventUtils.is_gpu_event(event):
                return HostEventType.KERNEL_EXECUTE
            return HostEventType.KERNEL_LAUNCH
        if is_tf_op_name(Trace.get_name(event)):
            return HostEventType.TF_OP_RUN
        return HostEventType.UNKNOWN_HOST_EVENT_TYPE
