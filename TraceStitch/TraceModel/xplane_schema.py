###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

# Semantic types for events and stats found in TensorFlow-style host and
# device traces. Event names and arg keys of the trace are matched against
# these values; anything that does not match is left untyped.

import re
from enum import IntEnum, StrEnum
from typing import Optional


class HostEventType(StrEnum):
    UNKNOWN_HOST_EVENT_TYPE = 'UnknownHostEventType'
    TRACE_CONTEXT = 'TraceContext'
    SESSION_RUN = 'SessionRun'
    FUNCTION_RUN = 'FunctionRun'
    RUN_GRAPH = 'RunGraph'
    EAGER_KERNEL_EXECUTE = 'EagerKernelExecute'
    EXECUTOR_STATE_PROCESS = 'ExecutorState::Process'
    ITERATOR_GET_NEXT_OP = 'IteratorGetNextOp'
    ITERATOR_GET_NEXT_AS_OPTIONAL_OP = 'IteratorGetNextAsOptionalOp'
    TF_OP_RUN = 'TfOpRun'
    KERNEL_LAUNCH = 'KernelLaunch'
    KERNEL_EXECUTE = 'KernelExecute'
    TF_DATA_CAPTURED_FUNCTION_RUN = 'InstantiatedCapturedFunction::Run'
    TF_DATA_CAPTURED_FUNCTION_RUN_ASYNC = 'InstantiatedCapturedFunction::RunAsync'
    TF_DATA_CAPTURED_FUNCTION_RUN_INSTANTIATED = 'InstantiatedCapturedFunction::RunInstantiated'
    TF_DATA_CAPTURED_FUNCTION_RUN_WITH_BORROWED_ARGS = 'InstantiatedCapturedFunction::RunWithBorrowedArgs'


class StatType(StrEnum):
    STEP_ID = 'step_id'
    ITER_NUM = 'iter_num'
    STEP_NUM = 'step_num'
    GRAPH_TYPE = 'graph_type'
    CORRELATION_ID = 'correlation_id'
    MODEL_ID = 'model_id'
    # Trace context: producer / consumer correlation and root / async markers.
    PRODUCER_TYPE = '_pt'
    PRODUCER_ID = '_p'
    CONSUMER_TYPE = '_ct'
    CONSUMER_ID = '_c'
    IS_ROOT = '_r'
    IS_ASYNC = '_a'
    # Written back by the grouping passes.
    GROUP_ID = 'group_id'
    STEP_NAME = 'step_name'
    IS_EAGER = 'is_eager'
    SELECTED_GROUP_IDS = 'selected_group_ids'


class ContextType(IntEnum):
    GENERIC = 0
    LEGACY = 1
    TF_EXECUTOR = 2
    TFRT_EXECUTOR = 3
    SHARED_BATCH_SCHEDULER = 4
    PJRT = 5
    GPU_LAUNCH = 6
    TF_DATA = 7


# Roots that TensorFlow itself emits; their names carry no user meaning.
IMPLICIT_ROOT_EVENT_TYPES = frozenset({
    HostEventType.FUNCTION_RUN,
    HostEventType.SESSION_RUN,
    HostEventType.RUN_GRAPH,
    HostEventType.EXECUTOR_STATE_PROCESS,
})

TF_DATA_CAPTURED_FUNCTION_TYPES = (
    HostEventType.TF_DATA_CAPTURED_FUNCTION_RUN,
    HostEventType.TF_DATA_CAPTURED_FUNCTION_RUN_ASYNC,
    HostEventType.TF_DATA_CAPTURED_FUNCTION_RUN_INSTANTIATED,
    HostEventType.TF_DATA_CAPTURED_FUNCTION_RUN_WITH_BORROWED_ARGS,
)

# TF ops are traced as "<op name>:<op type>", e.g. "dense/MatMul:MatMul"
_TF_OP_PATTERN = re.compile(r'^[\w./\-]+:[A-Z]\w*$')

_HOST_EVENT_TYPES_BY_NAME = {t.value: t for t in HostEventType}


def find_host_event_type(name: str) -> Optional[HostEventType]:
    return _HOST_EVENT_TYPES_BY_NAME.get(name)


def is_tf_op_name(name: str) -> bool:
    return bool(name) and _TF_OP_PATTERN.match(name) is not None


def find_context_type(value) -> Optional[ContextType]:
    try:
        return ContextType(int(value))
    except (TypeError, ValueError):
        return None
