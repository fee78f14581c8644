###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from typing import Iterable, List, Optional, Union

from ..TraceModel.trace_model import Trace
from ..TraceModel.xplane_schema import HostEventType
from .connect_info import (
    DEFAULT_ROOT_EVENT_TYPES,
    GroupingConfig,
    InterThreadConnectInfo,
    create_inter_thread_connect_info_list,
)
from .event_forest import EventForest
from .event_node import GroupMetadataMap


def _as_trace(trace: Union[Trace, List[dict]]) -> Trace:
    return trace if isinstance(trace, Trace) else Trace(trace)


def group_events(
    trace: Union[Trace, List[dict]],
    connect_info_list: List[InterThreadConnectInfo],
    root_event_types: Iterable[HostEventType],
    config: Optional[GroupingConfig] = None,
    verbose: bool = False,
) -> EventForest:
    """
    Runs the full grouping pipeline on a trace and returns the forest.

    Args:
        trace: Trace, or the list of trace event dicts to build one from.
        connect_info_list: Rules connecting events across timelines.
        root_event_types: Event types that start a new group.
        config: Event/stat types used by the heuristic passes.
        verbose: Show progress while nesting timelines.

    Returns:
        EventForest with group ids assigned; the trace events carry the
        group_id, step_name, is_eager and selected_group_ids stats.
    """
    event_forest = EventForest(
        _as_trace(trace),
        connect_info_list=connect_info_list,
        root_event_types=root_event_types,
        config=config,
        verbose=verbose,
    )
    event_forest.group_events()
    return event_forest


def group_tf_events(trace: Union[Trace, List[dict]], verbose: bool = False) -> GroupMetadataMap:
    # Grouping with the connect rules and root types of TensorFlow profiles.
    event_forest = group_events(
        trace,
        create_inter_thread_connect_info_list(),
        DEFAULT_ROOT_EVENT_TYPES,
        verbose=verbose,
    )
    return event_forest.get_group_metadata_map()


def connect_data_pipeline_events(
    trace: Union[Trace, List[dict]],
    config: Optional[GroupingConfig] = None,
) -> EventForest:
    """Nests the events and links data pipeline producers to their consumers, without grouping."""
    event_forest = EventForest(_as_trace(trace), config=config)
    event_forest.process_data_pipeline_events()
    return event_forest
