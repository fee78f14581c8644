###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import itertools
import json

from enum import StrEnum
from typing import List, Dict, Tuple


# generic data loader class for json or json.gz trace files
class DataLoader:
    @staticmethod
    def load_data(filename_path: str) -> dict:
        if filename_path.endswith('json.gz'):
            import gzip
            with gzip.open(filename_path, 'r') as fin:
                data = fin.read().decode('utf-8')
        elif filename_path.endswith('json'):
            with open(filename_path, 'r') as fin:
                data = fin.read()
        else:
            raise ValueError("Unknown file type", filename_path)
        return json.loads(data)


# Trace event utilities to help with traces in the Google Trace Event format
# https://docs.google.com/document/d/1CvAClvFfyA5R-PhYUmn5OOQtYMH4h6I0nSsKchNAySU/preview?tab=t.0
class TraceEventUtils:
    class TraceKeys(StrEnum):
        PID       = 'pid'
        TID       = 'tid'
        Phase     = 'ph'
        Args      = 'args'
        Name      = 'name'
        TimeStamp = 'ts'
        Duration  = 'dur'
        Category  = 'cat'

    class TracePhases(StrEnum):
        Complete = 'X'

    class GpuEventCategories(StrEnum):
        Kernel = 'kernel'
        MemSet = 'gpu_memset'
        MemCpy = 'gpu_memcpy'

    @staticmethod
    def is_complete_event(event: dict) -> bool:
        return event.get(TraceEventUtils.TraceKeys.Phase) == TraceEventUtils.TracePhases.Complete

    @staticmethod
    def is_gpu_event(event: dict) -> bool:
        return event.get(TraceEventUtils.TraceKeys.Category) in set(TraceEventUtils.GpuEventCategories)

    @staticmethod
    def timeline_key(event: dict) -> Tuple:
        return (event[TraceEventUtils.TraceKeys.PID], event[TraceEventUtils.TraceKeys.TID])

    # Groups complete events by (pid, tid), keeping the input order within a timeline
    @staticmethod
    def split_by_timeline(events: List[dict]) -> Dict[Tuple, List[dict]]:
        complete = filter(TraceEventUtils.is_complete_event, events)
        by_timeline = {}
        for key, group in itertools.groupby(complete, TraceEventUtils.timeline_key):
            by_timeline.setdefault(key, []).extend(group)
        return by_timeline
