###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .trace_model import Trace
from .xplane_schema import ContextType, HostEventType, StatType

__all__ = ["Trace", "ContextType", "HostEventType", "StatType"]
