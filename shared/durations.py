"""Duration strings used by configuration ("30d", "12h", "15m", "45s" or plain seconds)."""
from __future__ import annotations

import re
from datetime import timedelta
from typing import Union

_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)

_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """把配置中的时长解析为 timedelta，非法值抛出 ValueError。"""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        if value <= 0:
            raise ValueError(f"duration must be positive: {value!r}")
        return timedelta(seconds=value)

    match = _PATTERN.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    unit = _UNITS[match.group(2).lower()]
    return timedelta(**{unit: amount})
