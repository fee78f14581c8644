###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from dataclasses import dataclass, field
from typing import FrozenSet, List, Tuple

from ..TraceModel.xplane_schema import (
    IMPLICIT_ROOT_EVENT_TYPES,
    TF_DATA_CAPTURED_FUNCTION_TYPES,
    ContextType,
    HostEventType,
    StatType,
)


@dataclass
class InterThreadConnectInfo:
    """
    Connects events of parent_event_type as parents of events of child_event_type
    when the values of parent_stat_types on the parent equal the values of
    child_stat_types on the child. An empty child_stat_types reuses parent_stat_types.
    """
    parent_event_type: HostEventType
    child_event_type: HostEventType
    parent_stat_types: List[StatType]
    child_stat_types: List[StatType] = field(default_factory=list)

    def get_child_stat_types(self) -> List[StatType]:
        return self.child_stat_types or self.parent_stat_types


@dataclass
class GroupingConfig:
    """Event, stat and context types used by the heuristic passes."""
    loop_executor_event_type: HostEventType = HostEventType.EXECUTOR_STATE_PROCESS
    loop_stat_types: Tuple[StatType, StatType] = (StatType.STEP_ID, StatType.ITER_NUM)
    tf_data_function_event_types: Tuple[HostEventType, ...] = TF_DATA_CAPTURED_FUNCTION_TYPES
    graph_executor_event_type: HostEventType = HostEventType.EXECUTOR_STATE_PROCESS
    eager_context_event_type: HostEventType = HostEventType.EAGER_KERNEL_EXECUTE
    gpu_kernel_event_type: HostEventType = HostEventType.KERNEL_EXECUTE
    cpu_op_event_type: HostEventType = HostEventType.TF_OP_RUN
    function_run_event_type: HostEventType = HostEventType.FUNCTION_RUN
    model_id_root_event_type: HostEventType = HostEventType.SESSION_RUN
    model_id_stat_type: StatType = StatType.MODEL_ID
    data_pipeline_context_type: ContextType = ContextType.TF_DATA
    implicit_root_event_types: FrozenSet[HostEventType] = IMPLICIT_ROOT_EVENT_TYPES


DEFAULT_ROOT_EVENT_TYPES = [
    HostEventType.TRACE_CONTEXT,
    HostEventType.FUNCTION_RUN,
    HostEventType.SESSION_RUN,
]


def create_inter_thread_connect_info_list() -> List[InterThreadConnectInfo]:
    return [
        InterThreadConnectInfo(
            HostEventType.EXECUTOR_STATE_PROCESS,
            HostEventType.ITERATOR_GET_NEXT_OP,
            [StatType.STEP_ID, StatType.ITER_NUM],
        ),
        InterThreadConnectInfo(
            HostEventType.EXECUTOR_STATE_PROCESS,
            HostEventType.ITERATOR_GET_NEXT_AS_OPTIONAL_OP,
            [StatType.STEP_ID, StatType.ITER_NUM],
        ),
        InterThreadConnectInfo(
            HostEventType.KERNEL_LAUNCH,
            HostEventType.KERNEL_EXECUTE,
            [StatType.CORRELATION_ID],
        ),
    ]
