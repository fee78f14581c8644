###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import logging
import warnings

import pandas as pd

from ..EventGroups.event_forest import EventForest

logger = logging.getLogger(__name__)

GROUP_COLUMNS = [
    "group_id",
    "name",
    "model_id",
    "root_uid",
    "root_name",
    "root_ts",
    "parents",
    "children",
]


def get_df_groups(event_forest: EventForest) -> pd.DataFrame:
    """
    One row per group of the forest, sorted by group id.

    parents and children are tuples of related group ids so that the
    columns stay hashable for downstream groupby / merge.
    """
    group_metadata_map = event_forest.get_group_metadata_map()
    if not group_metadata_map:
        warnings.warn("Input list of groups is empty. Returning an empty DataFrame.", UserWarning)
        return pd.DataFrame(columns=GROUP_COLUMNS)

    rows = []
    for group_id, group_metadata in group_metadata_map.items():
        root_event = None
        if group_metadata.root_uid is not None:
            root_event = event_forest.get_node(group_metadata.root_uid)
        rows.append({
            "group_id": group_id,
            "name": group_metadata.name,
            "model_id": group_metadata.model_id or None,
            "root_uid": group_metadata.root_uid,
            "root_name": root_event.name if root_event is not None else None,
            "root_ts": root_event.start if root_event is not None else None,
            "parents": tuple(sorted(group_metadata.parents)),
            "children": tuple(sorted(group_metadata.children)),
        })
    df = pd.DataFrame(rows, columns=GROUP_COLUMNS)
    df.sort_values(by="group_id", inplace=True)
    df.reset_index(drop=True, inplace=True)
    logger.debug(f"Group report with {len(df)} rows")
    return df
