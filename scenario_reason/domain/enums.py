"""Controlled enumerations for the scenario-reason domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class WeatherType(str, Enum):
    """Weather categories reported by the simulator."""

    CLEAR = "clear"
    CLOUDY = "cloudy"
    WET = "wet"
    WET_CLOUDY = "wet_cloudy"
    SOFT_RAINY = "soft_rainy"
    MID_RAINY = "mid_rainy"
    HARD_RAINY = "hard_rainy"


class Daytime(str, Enum):
    """Time-of-day categories reported by the simulator."""

    NOON = "noon"
    SUNSET = "sunset"


class LaneDirection(str, Enum):
    """Turn semantics of a lane (mostly relevant inside junctions)."""

    STRAIGHT = "straight"
    LEFT_TURN = "left_turn"
    RIGHT_TURN = "right_turn"
    UNKNOWN = "unknown"


class TrafficLightState(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    OFF = "off"
    UNKNOWN = "unknown"


class LandmarkType(str, Enum):
    STOP_SIGN = "stop_sign"
    YIELD_SIGN = "yield_sign"
    SPEED_LIMIT = "speed_limit"
    OTHER = "other"


class NodeKind(str, Enum):
    """Variants of a classification tree node."""

    ALL = "all"
    EXCLUSIVE = "exclusive"
    OPTIONAL = "optional"
    BOUNDED = "bounded"
    LEAF = "leaf"


class ClassificationStatus(str, Enum):
    """Outcome of classifying one segment against one projection."""

    MATCHED = "matched"
    ANOMALY = "anomaly"
    NO_MATCH = "no_match"
