"""
Time window gating based on sample intervals (SIT / C-SIT / RIT).

A metric sampled every N minutes cannot be shown meaningfully over a window
shorter than N minutes, so those windows are withheld. ``Latest`` and
``Custom`` are always offered.
"""
from enum import Enum
from typing import List, NamedTuple, Optional

from plantscope.topology.models import Node, Variable


class TimeWindow(str, Enum):
    LATEST = "Latest"
    MIN_15 = "15m"
    HOUR_1 = "1h"
    HOUR_3 = "3h"
    HOUR_12 = "12h"
    HOUR_24 = "24h"
    DAY_3 = "3d"
    DAY_7 = "7d"
    DAY_14 = "14d"
    DAY_30 = "30d"
    CUSTOM = "Custom"

    def __str__(self) -> str:
        return self.value


class TimeWindowConfig(NamedTuple):
    window: TimeWindow
    minutes: int  # 0 for Latest, -1 for Custom


TIME_WINDOWS: List[TimeWindowConfig] = [
    TimeWindowConfig(TimeWindow.LATEST, 0),
    TimeWindowConfig(TimeWindow.MIN_15, 15),
    TimeWindowConfig(TimeWindow.HOUR_1, 60),
    TimeWindowConfig(TimeWindow.HOUR_3, 180),
    TimeWindowConfig(TimeWindow.HOUR_12, 720),
    TimeWindowConfig(TimeWindow.HOUR_24, 1440),
    TimeWindowConfig(TimeWindow.DAY_3, 4320),
    TimeWindowConfig(TimeWindow.DAY_7, 10080),
    TimeWindowConfig(TimeWindow.DAY_14, 20160),
    TimeWindowConfig(TimeWindow.DAY_30, 43200),
    TimeWindowConfig(TimeWindow.CUSTOM, -1),
]

SENTINEL_WINDOWS = (TimeWindow.LATEST, TimeWindow.CUSTOM)


class AlignedPeriod(NamedTuple):
    period: str
    should_consolidate: bool


def get_time_window_config(window) -> Optional[TimeWindowConfig]:
    """Look up a window's configuration; None for unknown windows."""
    for config in TIME_WINDOWS:
        if config.window == window:
            return config
    return None


def get_window_minutes(window) -> int:
    """Duration of a window in minutes (0 for Latest and unknown windows, -1 for Custom)."""
    config = get_time_window_config(window)
    return config.minutes if config else 0


def _minimum_interval(variable: Variable, node: Optional[Node] = None) -> int:
    """Largest of the variable SIT and the node's C-SIT / RIT, when present."""
    interval = variable.sit
    if node is not None:
        if node.c_sit:
            interval = max(interval, node.c_sit)
        if node.rit:
            interval = max(interval, node.rit)
    return interval


def get_allowed_windows(variable: Variable, node: Optional[Node] = None) -> List[TimeWindow]:
    """
    Windows that can display a metric.

    Args:
        variable: Metric variable (provides SIT)
        node: Optional node whose C-SIT / RIT can raise the minimum interval

    Returns:
        Windows in display order whose duration is at least the minimum
        interval, plus Latest and Custom
    """
    min_interval = _minimum_interval(variable, node)
    return [
        config.window
        for config in TIME_WINDOWS
        if config.window in SENTINEL_WINDOWS or config.minutes >= min_interval
    ]


def is_window_allowed(window, variable: Variable, node: Optional[Node] = None) -> bool:
    return window in get_allowed_windows(variable, node)


def get_minimum_window(variable: Variable, node: Optional[Node] = None) -> TimeWindow:
    """Smallest allowed non-sentinel window, or Latest when none is allowed."""
    for window in get_allowed_windows(variable, node):
        if window not in SENTINEL_WINDOWS:
            return window
    return TimeWindow.LATEST


def is_time_window_valid_for_sit(window, sit: int) -> bool:
    """True if ``window`` is long enough for a sample interval of ``sit`` minutes."""
    if window in SENTINEL_WINDOWS:
        return True
    return get_window_minutes(window) >= sit


def get_minimum_time_window(sit: int) -> TimeWindow:
    """Smallest fixed window covering ``sit`` minutes, falling back to 30d."""
    for config in TIME_WINDOWS:
        if config.window in SENTINEL_WINDOWS:
            continue
        if config.minutes >= sit:
            return config.window
    return TimeWindow.DAY_30


def format_time_window(window) -> str:
    config = get_time_window_config(window)
    if config is None:
        return str(window)
    if config.window == TimeWindow.CUSTOM:
        return "Custom Range"
    return config.window.value


def get_aligned_time_period(overlay_window, data_sit: int, selected_window) -> AlignedPeriod:
    """
    Decide which period a data panel shows for a metric.

    Args:
        overlay_window: Window driving the overlay
        data_sit: Sample interval of the data in minutes
        selected_window: Window the user selected

    Returns:
        AlignedPeriod with a display label and whether values need consolidating
    """
    selected_minutes = get_window_minutes(selected_window)
    selected_label = str(selected_window)

    if overlay_window == TimeWindow.LATEST:
        return AlignedPeriod(f"Latest (SIT: {data_sit}m)", False)

    if data_sit < selected_minutes:
        return AlignedPeriod(f"{selected_label} (consolidated from {data_sit}m SIT)", True)

    if data_sit > selected_minutes:
        return AlignedPeriod(f"Latest (SIT: {data_sit}m)", False)

    return AlignedPeriod(selected_label, False)
