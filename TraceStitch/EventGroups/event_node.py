###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..TraceModel.trace_model import Trace
from ..TraceModel.xplane_schema import ContextType, HostEventType, StatType, find_context_type


@dataclass(frozen=True)
class ContextInfo:
    """(kind, id) pair matching a producer event to its consumers across timelines."""
    type: ContextType
    id: int


@dataclass
class ContextGroup:
    producers: List["EventNode"] = field(default_factory=list)
    consumers: List["EventNode"] = field(default_factory=list)


@dataclass
class GroupMetadata:
    name: str = ""
    model_id: str = ""  # inference only
    parents: Set[int] = field(default_factory=set)
    children: Set[int] = field(default_factory=set)
    root_uid: Optional[int] = None


GroupMetadataMap = Dict[int, GroupMetadata]


class EventNode:
    """
    Wraps one trace event with the links computed by the EventForest.

    Parents and children are stored as UIDs, i.e. indices into the forest's node
    list, so the graph can have several parents per node without reference cycles.
    """

    def __init__(self, uid: int, event: dict, timeline: Tuple):
        self.uid = uid
        self.event = event
        self.timeline = timeline
        self.event_type: HostEventType = Trace.get_event_type(event)
        self.parents: List[int] = []
        self.children: List[int] = []
        self.group_id: Optional[int] = None
        self.is_root = bool(Trace.get_int_stat(event, StatType.IS_ROOT))
        self.is_async = bool(Trace.get_int_stat(event, StatType.IS_ASYNC))
        self.is_eager = False
        self.producer_context = self._make_context(StatType.PRODUCER_TYPE, StatType.PRODUCER_ID)
        self.consumer_context = self._make_context(StatType.CONSUMER_TYPE, StatType.CONSUMER_ID)

    def _make_context(self, type_stat: StatType, id_stat: StatType) -> Optional[ContextInfo]:
        context_type = find_context_type(Trace.get_stat(self.event, type_stat))
        context_id = Trace.get_int_stat(self.event, id_stat)
        if context_type is None or context_id is None:
            return None
        return ContextInfo(context_type, context_id)

    @property
    def name(self) -> str:
        return Trace.get_name(self.event)

    @property
    def start(self):
        return Trace.get_start(self.event)

    @property
    def duration(self):
        return Trace.get_duration(self.event)

    @property
    def end(self):
        return Trace.get_end(self.event)

    def get_stat(self, stat_type: StatType) -> Optional[Any]:
        return Trace.get_stat(self.event, stat_type)

    def add_child(self, child: "EventNode") -> None:
        if child.uid in self.children:
            return
        self.children.append(child.uid)
        child.parents.append(self.uid)

    def set_group_id(self, group_id: int) -> None:
        self.group_id = group_id
        Trace.set_stat(self.event, StatType.GROUP_ID, group_id)

    def add_step_name(self, step_name: str) -> None:
        Trace.set_stat(self.event, StatType.STEP_NAME, step_name)

    def set_is_eager(self, is_eager: bool) -> None:
        self.is_eager = is_eager
        Trace.set_stat(self.event, StatType.IS_EAGER, 1 if is_eager else 0)

    def get_selected_group_ids(self, group_metadata_map: GroupMetadataMap) -> List[int]:
        # Own group first, then direct parent groups and every group reachable
        # through the children sets.
        if self.group_id is None:
            return []
        related = set(group_metadata_map[self.group_id].parents)
        queue = deque([self.group_id])
        seen = {self.group_id}
        while queue:
            group_id = queue.popleft()
            for child_id in group_metadata_map[group_id].children:
                if child_id not in seen:
                    seen.add(child_id)
                    related.add(child_id)
                    queue.append(child_id)
        related.discard(self.group_id)
        return [self.group_id] + sorted(related)

    def add_selected_group_ids(self, group_metadata_map: GroupMetadataMap) -> None:
        Trace.set_stat(self.event, StatType.SELECTED_GROUP_IDS,
                       self.get_selected_group_ids(group_metadata_map))

    def is_nested_in(self, parent: Optional["EventNode"]) -> bool:
        return parent is not None and parent.start <= self.start and self.end <= parent.end

    def __repr__(self) -> str:
        return (f"EventNode(uid={self.uid}, name={self.name!r}, type={self.event_type.value}, "
                f"ts={self.start}, dur={self.duration}, group_id={self.group_id})")
