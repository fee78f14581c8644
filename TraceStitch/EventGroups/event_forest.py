###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import functools
import logging
from collections import defaultdict, deque
from typing import Any, Dict, Iterable, List, Optional, Tuple

import tqdm

from ..TraceModel.trace_model import Trace
from ..TraceModel.xplane_schema import ContextType, HostEventType, StatType
from .connect_info import GroupingConfig, InterThreadConnectInfo
from .event_node import ContextGroup, EventNode, GroupMetadata, GroupMetadataMap

logger = logging.getLogger(__name__)


def pipeline_stage(*requires: str):
    """
    Marks an EventForest method as a pipeline stage. The stage refuses to run
    until every stage named in `requires` has completed on the same forest.
    """
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            missing = [name for name in requires if name not in self.completed_stages]
            if missing:
                raise RuntimeError(f"{method.__name__} requires {', '.join(missing)} to run first")
            result = method(self, *args, **kwargs)
            if method.__name__ not in self.completed_stages:
                self.completed_stages.append(method.__name__)
            return result
        wrapper.requires = requires
        return wrapper
    return decorator


class EventForest:
    """
    Augments a Trace with causal links and execution groups.

    Events are stitched (1) by nesting within the same timeline and (2) across
    timelines by comparing stats per the connect rules or by matching
    producer/consumer contexts. Events are then grouped by the root events given
    in root_event_types, marked by the is_root stat, or found by loop detection.

    Building the forest only nests the events; call group_events() to run the
    rest of the pipeline.
    """

    GROUPING_PIPELINE = (
        "connect_inter_thread",
        "connect_context_groups",
        "process_tensorflow_loop",
        "process_legacy_root_events",
        "mark_eagerly_executed_gpu_kernels",
        "mark_eagerly_executed_cpu_tf_ops",
        "create_event_group",
        "process_worker",
        "process_model_ids",
        "add_selected_group_ids",
    )

    def __init__(
        self,
        trace: Trace,
        connect_info_list: Optional[List[InterThreadConnectInfo]] = None,
        root_event_types: Optional[Iterable[HostEventType]] = None,
        config: Optional[GroupingConfig] = None,
        verbose: bool = False,
    ):
        if not isinstance(trace, Trace):
            raise ValueError(f"EventForest expects a Trace, got {type(trace).__name__}")
        self.trace = trace
        self.connect_info_list = list(connect_info_list or [])
        self.root_event_types = set(root_event_types or [])
        self.config = config or GroupingConfig()
        self.verbose = verbose

        self.nodes: List[EventNode] = []
        self.event_node_map: Dict[HostEventType, List[EventNode]] = defaultdict(list)
        self.context_groups: Dict[ContextType, Dict[int, ContextGroup]] = defaultdict(lambda: defaultdict(ContextGroup))
        self.group_metadata_map: GroupMetadataMap = {}
        self.root_events: List[EventNode] = []
        self.tf_loop_root_events: List[EventNode] = []
        self.next_group_id = 0
        self.completed_stages: List[str] = []

        self.connect_intra_thread()

    def group_events(self) -> GroupMetadataMap:
        for stage_name in self.GROUPING_PIPELINE:
            if stage_name not in self.completed_stages:
                getattr(self, stage_name)()
        return self.group_metadata_map

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_event_node_map(self) -> Dict[HostEventType, List[EventNode]]:
        return self.event_node_map

    def get_group_metadata_map(self) -> GroupMetadataMap:
        return self.group_metadata_map

    def get_node(self, uid: int) -> EventNode:
        return self.nodes[uid]

    def get_parent_nodes(self, node: EventNode) -> List[EventNode]:
        return [self.nodes[uid] for uid in node.parents]

    def get_children_nodes(self, node: EventNode) -> List[EventNode]:
        return [self.nodes[uid] for uid in node.children]

    def get_group_nodes(self, group_id: int) -> List[EventNode]:
        return [node for node in self.nodes if node.group_id == group_id]

    def get_context_stat(self, node: EventNode, stat_type: StatType) -> Optional[Any]:
        """Returns the stat from the node itself or its closest ancestor that has it."""
        queue = deque([node])
        seen = {node.uid}
        while queue:
            current = queue.popleft()
            value = current.get_stat(stat_type)
            if value is not None:
                return value
            for parent_uid in current.parents:
                if parent_uid not in seen:
                    seen.add(parent_uid)
                    queue.append(self.nodes[parent_uid])
        return None

    def get_context_int_stat(self, node: EventNode, stat_type: StatType) -> Optional[int]:
        value = self.get_context_stat(node, stat_type)
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def find_parent(self, node: EventNode, event_type: HostEventType, include_self: bool = True) -> Optional[EventNode]:
        """Returns the closest ancestor (or the node itself) of the given event type."""
        queue = deque([node] if include_self else self.get_parent_nodes(node))
        seen = {candidate.uid for candidate in queue}
        while queue:
            current = queue.popleft()
            if current.event_type == event_type:
                return current
            for parent_uid in current.parents:
                if parent_uid not in seen:
                    seen.add(parent_uid)
                    queue.append(self.nodes[parent_uid])
        return None

    def is_eager(self, node: EventNode) -> bool:
        # Eager if the trace context has an eager op execution but no graph executor.
        return (self.find_parent(node, self.config.graph_executor_event_type) is None
                and self.find_parent(node, self.config.eager_context_event_type) is not None)

    def get_group_name(self, root_event: EventNode) -> str:
        step_name = root_event.get_stat(StatType.STEP_NAME)
        if step_name:
            return str(step_name)
        name = ""
        graph_type = root_event.get_stat(StatType.GRAPH_TYPE)
        if graph_type is not None:
            name = f"{graph_type} "
        elif root_event.event_type not in self.config.implicit_root_event_types:
            name = f"{root_event.name} "
        step_num = self.get_context_int_stat(root_event, StatType.ITER_NUM)
        if step_num is None:
            step_num = self.get_context_int_stat(root_event, StatType.STEP_NUM)
        if step_num is None:
            step_num = root_event.group_id or 0
        return f"{name}{step_num}"

    # ------------------------------------------------------------------
    # Connection passes
    # ------------------------------------------------------------------

    @pipeline_stage()
    def connect_intra_thread(self):
        # 1. Create one node per event and register its producer/consumer contexts
        # 2. Sort the timeline by start time, longest event first on ties
        # 3. Pop the stack while its top has ended before the current event starts
        # 4. The closest open event that contains the current event is its parent
        # 5. Push the current event
        timelines = self.trace.get_timelines()
        for timeline, events in tqdm.tqdm(timelines.items(), desc="Nesting timelines", disable=not self.verbose):
            nodes = [self._create_node(event, timeline) for event in events]
            stack = []
            for node in sorted(nodes, key=lambda n: (n.start, -n.duration)):
                # Async events do not follow the nesting on their timeline.
                if node.is_async:
                    continue
                while stack and stack[-1].end <= node.start:
                    stack.pop()
                parent = next((open_node for open_node in reversed(stack) if node.is_nested_in(open_node)), None)
                if parent is not None:
                    parent.add_child(node)
                stack.append(node)
        logger.info(f"Created {len(self.nodes)} event nodes on {len(timelines)} timelines")

    def _create_node(self, event: dict, timeline: Tuple) -> EventNode:
        node = EventNode(len(self.nodes), event, timeline)
        self.nodes.append(node)
        self.event_node_map[node.event_type].append(node)
        if node.producer_context is not None:
            context = node.producer_context
            self.context_groups[context.type][context.id].producers.append(node)
        if node.consumer_context is not None:
            context = node.consumer_context
            self.context_groups[context.type][context.id].consumers.append(node)
        return node

    @staticmethod
    def _normalize_stat_value(value):
        # Integral values compare as int whatever their JSON type: 7, 7.0 and "7" match.
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return value
        return str(value)

    def _get_context_stat_key(self, node: EventNode, stat_types: List[StatType]) -> Optional[Tuple]:
        values = []
        for stat_type in stat_types:
            value = self.get_context_stat(node, stat_type)
            if value is None:
                return None
            values.append(self._normalize_stat_value(value))
        return tuple(values)

    @pipeline_stage("connect_intra_thread")
    def connect_inter_thread(self):
        for connect_info in self.connect_info_list:
            connect_map = defaultdict(list)
            for parent in self.event_node_map.get(connect_info.parent_event_type, []):
                key = self._get_context_stat_key(parent, connect_info.parent_stat_types)
                if key is not None:
                    connect_map[key].append(parent)
            num_connected = 0
            for child in self.event_node_map.get(connect_info.child_event_type, []):
                key = self._get_context_stat_key(child, connect_info.get_child_stat_types())
                if key is None:
                    continue
                for parent in connect_map.get(key, []):
                    if parent is not child:
                        parent.add_child(child)
                        num_connected += 1
            logger.debug(f"{connect_info.parent_event_type} -> {connect_info.child_event_type}: "
                         f"{num_connected} connections")

    def _connect_context_groups(self, context_types: Iterable[ContextType]) -> int:
        num_connected = 0
        for context_type in sorted(context_types):
            for context_group in self.context_groups.get(context_type, {}).values():
                for producer in context_group.producers:
                    for consumer in context_group.consumers:
                        if producer is not consumer:
                            producer.add_child(consumer)
                            num_connected += 1
        return num_connected

    @pipeline_stage("connect_intra_thread")
    def connect_context_groups(self):
        # The data pipeline context is left to process_data_pipeline_events.
        context_types = [t for t in self.context_groups if t != self.config.data_pipeline_context_type]
        num_connected = self._connect_context_groups(context_types)
        logger.debug(f"Connected {num_connected} producer/consumer pairs")

    @pipeline_stage("connect_intra_thread")
    def process_data_pipeline_events(self):
        num_connected = self._connect_context_groups([self.config.data_pipeline_context_type])
        logger.info(f"Connected {num_connected} data pipeline producer/consumer pairs")

    # ------------------------------------------------------------------
    # Root detection and grouping
    # ------------------------------------------------------------------

    def _is_tf_data_event(self, node: EventNode) -> bool:
        return any(self.find_parent(node, event_type) is not None
                   for event_type in self.config.tf_data_function_event_types)

    @pipeline_stage("connect_inter_thread", "connect_context_groups")
    def process_tensorflow_loop(self):
        step_stat_type, iter_stat_type = self.config.loop_stat_types
        tf_loops: Dict[int, Dict[int, List[EventNode]]] = {}
        for executor_event in self.event_node_map.get(self.config.loop_executor_event_type, []):
            if self._is_tf_data_event(executor_event):
                continue
            step_id = self.get_context_int_stat(executor_event, step_stat_type)
            iter_num = self.get_context_int_stat(executor_event, iter_stat_type)
            if step_id is None or iter_num is None:
                continue
            tf_loops.setdefault(step_id, {}).setdefault(iter_num, []).append(executor_event)

        for step_id, tf_loop in tf_loops.items():
            # A function or session that ran a single iteration 0 is not a loop.
            if list(tf_loop) == [0]:
                continue
            for iteration in tf_loop.values():
                root_event = min(iteration, key=lambda node: (node.start, node.uid))
                self.tf_loop_root_events.append(root_event)
                for event in iteration:
                    if event is not root_event:
                        root_event.add_child(event)
        if self.tf_loop_root_events:
            logger.info(f"Found {len(self.tf_loop_root_events)} loop iterations")

    @pipeline_stage("connect_intra_thread")
    def process_legacy_root_events(self):
        for node in self.nodes:
            if node.event_type in self.root_event_types:
                node.is_root = True
            if node.is_root:
                self.root_events.append(node)

    @pipeline_stage("process_tensorflow_loop", "process_legacy_root_events")
    def create_event_group(self):
        if self.tf_loop_root_events:
            # Loop iterations replace the legacy roots.
            root_events = self.tf_loop_root_events
        else:
            root_events = self.root_events
        # Same tie-break as nesting: on equal starts the enclosing root goes first.
        for root_event in sorted(root_events, key=lambda node: (node.start, -node.duration, node.uid)):
            if root_event.group_id is not None:
                continue
            self._process_root_event(self.next_group_id, root_event)
            self.next_group_id += 1
        logger.info(f"Created {len(self.group_metadata_map)} event groups from {len(root_events)} root events")

    def _process_root_event(self, group_id: int, root_event: EventNode):
        self.group_metadata_map[group_id] = GroupMetadata(root_uid=root_event.uid)
        self._propagate_group_id(root_event, group_id)
        group_name = self.get_group_name(root_event)
        if root_event.event_type not in self.config.implicit_root_event_types:
            root_event.add_step_name(group_name)
        self.group_metadata_map[group_id].name = group_name

    def _propagate_group_id(self, start_node: EventNode, group_id: int):
        queue = deque([start_node])
        seen = {start_node.uid}
        while queue:
            node = queue.popleft()
            if node.group_id is not None:
                if node.group_id != group_id:
                    self._add_group_relation(group_id, node.group_id)
                continue
            node.set_group_id(group_id)
            for child_uid in node.children:
                if child_uid not in seen:
                    seen.add(child_uid)
                    queue.append(self.nodes[child_uid])

    def _add_group_relation(self, parent_group_id: int, child_group_id: int):
        self.group_metadata_map.setdefault(parent_group_id, GroupMetadata()).children.add(child_group_id)
        self.group_metadata_map.setdefault(child_group_id, GroupMetadata()).parents.add(parent_group_id)

    @pipeline_stage("create_event_group")
    def add_selected_group_ids(self):
        for node in self.nodes:
            if node.group_id is not None:
                node.add_selected_group_ids(self.group_metadata_map)

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    @pipeline_stage("connect_inter_thread")
    def mark_eagerly_executed_gpu_kernels(self):
        for kernel in self.event_node_map.get(self.config.gpu_kernel_event_type, []):
            kernel.set_is_eager(self.is_eager(kernel))

    @pipeline_stage("connect_inter_thread")
    def mark_eagerly_executed_cpu_tf_ops(self):
        for tf_op in self.event_node_map.get(self.config.cpu_op_event_type, []):
            tf_op.set_is_eager(self.find_parent(tf_op, self.config.graph_executor_event_type) is None)

    def _find_function_run_child(self, node: EventNode) -> Optional[EventNode]:
        for child in self.get_children_nodes(node):
            if child.event_type == self.config.function_run_event_type:
                return child
        return None

    @pipeline_stage("create_event_group")
    def process_worker(self):
        # An eager op that runs a function opens a window on that function's
        # group; the eager ops following it on the same timeline are folded in
        # until one of them already belongs to some other group.
        eager_events_by_timeline = defaultdict(list)
        for node in self.event_node_map.get(self.config.eager_context_event_type, []):
            eager_events_by_timeline[node.timeline].append(node)

        num_merged = 0
        for eager_events in eager_events_by_timeline.values():
            worker_root, worker_group_id = None, None
            for eager_event in sorted(eager_events, key=lambda node: (node.start, node.uid)):
                function_run = self._find_function_run_child(eager_event)
                if function_run is not None:
                    worker_group_id = function_run.group_id
                    worker_root = eager_event if worker_group_id is not None else None
                    if worker_root is not None:
                        self._propagate_group_id(eager_event, worker_group_id)
                    continue
                if worker_root is None:
                    continue
                if eager_event.group_id is not None and eager_event.group_id != worker_group_id:
                    worker_root = None
                    continue
                worker_root.add_child(eager_event)
                self._propagate_group_id(eager_event, worker_group_id)
                num_merged += 1
        if num_merged:
            logger.info(f"Merged {num_merged} eager ops into function run groups")

    @pipeline_stage("create_event_group")
    def process_model_ids(self):
        for node in self.event_node_map.get(self.config.model_id_root_event_type, []):
            if node.group_id is None:
                continue
            model_id = self.get_context_stat(node, self.config.model_id_stat_type)
            if model_id is None:
                continue
            self.group_metadata_map[node.group_id].model_id = str(model_id)

    # ------------------------------------------------------------------
    # Debugging helpers
    # ------------------------------------------------------------------

    def traverse_subtree_and_print(self, node: EventNode, prefix="", is_last=True, _seen=None):
        _seen = set() if _seen is None else _seen
        connector = "└── " if is_last else "├── "
        name = node.name
        max_len = 64
        if len(name) > max_len:
            name = name[:max_len] + '...'
        print(f"{prefix}{connector}Type: {node.event_type.value}, Name: {name}, Group: {node.group_id}")
        if node.uid in _seen:
            return
        _seen.add(node.uid)

        children = self.get_children_nodes(node)
        new_prefix = prefix + ("    " if is_last else "│   ")
        for i, child in enumerate(children):
            self.traverse_subtree_and_print(child, new_prefix, is_last=(i == len(children) - 1), _seen=_seen)
