###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .EventGroups import (
    EventForest,
    EventNode,
    GroupingConfig,
    GroupMetadata,
    InterThreadConnectInfo,
    connect_data_pipeline_events,
    create_inter_thread_connect_info_list,
    group_events,
    group_tf_events,
)
from .Reporting import get_df_groups
from .TraceModel import ContextType, HostEventType, StatType, Trace
from .util import DataLoader, TraceEventUtils

__all__ = [
    "EventForest",
    "EventNode",
    "GroupingConfig",
    "GroupMetadata",
    "InterThreadConnectInfo",
    "create_inter_thread_connect_info_list",
    "group_events",
    "group_tf_events",
    "connect_data_pipeline_events",
    "get_df_groups",
    "Trace",
    "ContextType",
    "HostEventType",
    "StatType",
    "DataLoader",
    "TraceEventUtils",
]
