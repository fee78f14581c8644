###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .connect_info import (
    DEFAULT_ROOT_EVENT_TYPES,
    GroupingConfig,
    InterThreadConnectInfo,
    create_inter_thread_connect_info_list,
)
from .event_forest import EventForest
from .event_node import ContextInfo, EventNode, GroupMetadata
from .group_events import connect_data_pipeline_events, group_events, group_tf_events

__all__ = [
    "EventForest",
    "EventNode",
    "ContextInfo",
    "GroupMetadata",
    "InterThreadConnectInfo",
    "GroupingConfig",
    "DEFAULT_ROOT_EVENT_TYPES",
    "create_inter_thread_connect_info_list",
    "group_events",
    "group_tf_events",
    "connect_data_pipeline_events",
]
