"""
Model Enums
"""

from enum import Enum


class HarvestStatus(Enum):
    REGISTERED = "REGISTERED"
    INVOICED = "INVOICED"


class OutboxStatus(Enum):
    DEAD_LETTERED = "DEAD_LETTERED"
    REPLAYED = "REPLAYED"
