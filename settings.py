# settings.py
"""
Parsing and persistence of region settings.

Settings arrive from outside the simulation (a control panel, a saved JSON
file) and are never trusted: every field is coerced into range, and any
field that cannot be read is replaced by its default with a warning.
Nothing in this module raises on malformed input.
"""
import json
import logging
import math
import os
import re
import threading
import pygame
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from constants import (
    MAX_REGIONS, DEFAULT_VISIBLE, DEFAULT_TOP_LEFT, DEFAULT_SIZE, DEFAULT_RADIUS,
    DEFAULT_COUNT, DEFAULT_MOTION, DEFAULT_DIRECTION, DEFAULT_COLOR, DEFAULT_TRAIL,
    MAX_COUNT, TRAIL_RANGE, DIRECTION_RANGE,
)
from motion import MotionKind, MotionRule, resolve

# --- Data Contracts ---
#
# RegionSettings.from_dict(data: Any) -> RegionSettings
#   - Inputs: a mapping using the JSON keys below. Anything else is treated
#     as an empty mapping.
#   - Outputs: a RegionSettings with every field in range.
#   - Invariants: never raises. sizew, sizeh, radius, count >= 0.
#
# parse_snapshot(items: Any) -> List[RegionSettings]
#   - At most MAX_REGIONS entries. A non-list payload is an empty snapshot.

Color = Tuple[int, int, int, int]

_RGB_PATTERN = re.compile(
    r"^\s*rgba?\(\s*([^,\s]+)\s*,\s*([^,\s]+)\s*,\s*([^,\s]+)\s*(?:,\s*([^,\s\)]+)\s*)?\)\s*$"
)


class MalformedSettings(ValueError):
    """A single settings field could not be interpreted."""


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise MalformedSettings(f"expected a boolean, got {value!r}")


def _coerce_float(value: Any, low: float = -math.inf, high: float = math.inf) -> float:
    if isinstance(value, bool):
        raise MalformedSettings(f"expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise MalformedSettings(f"expected a number, got {value!r}")
    if not math.isfinite(number):
        raise MalformedSettings(f"expected a finite number, got {value!r}")
    return min(max(number, low), high)


def _coerce_count(value: Any) -> int:
    return int(_coerce_float(value, 0, MAX_COUNT))


def _channel(text: str) -> int:
    return int(round(_coerce_float(text, 0, 255)))


def parse_color(value: Any) -> Color:
    """
    Converts a colour setting into an (r, g, b, a) tuple.

    Accepts CSS "rgba(r, g, b, a)" / "rgb(r, g, b)" strings with alpha in
    [0, 1], anything `pygame.Color` understands ("white", "#ff8800"), and
    lists of 3 or 4 channel values.
    """
    if isinstance(value, str):
        match = _RGB_PATTERN.match(value)
        if match:
            r, g, b, a = match.groups()
            alpha = 255 if a is None else int(round(255 * _coerce_float(a, 0.0, 1.0)))
            return (_channel(r), _channel(g), _channel(b), alpha)
        try:
            color = pygame.Color(value.strip())
        except ValueError:
            raise MalformedSettings(f"unrecognised colour {value!r}")
        return (color.r, color.g, color.b, color.a)

    if isinstance(value, (list, tuple)) and len(value) in (3, 4):
        channels = [_channel(c) for c in value]
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)

    raise MalformedSettings(f"unrecognised colour {value!r}")


def format_color(color: Color) -> str:
    r, g, b, a = color
    return f"rgba({r}, {g}, {b}, {round(a / 255, 3):g})"


@dataclass(frozen=True)
class RegionSettings:
    """
    Configuration of one region, as delivered by the control panel.

    Attribute names match the keys of the saved JSON files.
    """
    visible: bool = DEFAULT_VISIBLE
    tlx: float = DEFAULT_TOP_LEFT[0]
    tly: float = DEFAULT_TOP_LEFT[1]
    sizew: float = DEFAULT_SIZE[0]
    sizeh: float = DEFAULT_SIZE[1]
    radius: float = DEFAULT_RADIUS
    count: int = DEFAULT_COUNT
    posFn: MotionKind = MotionKind(DEFAULT_MOTION)
    dirx: float = DEFAULT_DIRECTION[0]
    diry: float = DEFAULT_DIRECTION[1]
    color: Color = DEFAULT_COLOR
    tail: float = DEFAULT_TRAIL

    def motion_rule(self) -> MotionRule:
        return resolve(self.posFn, self.dirx, self.diry)

    @classmethod
    def from_dict(cls, data: Any) -> "RegionSettings":
        if isinstance(data, RegionSettings):
            return data
        if not isinstance(data, dict):
            logging.warning(f"Region settings must be an object, got {type(data).__name__}; using defaults.")
            data = {}

        coercers: Dict[str, Callable[[Any], Any]] = {
            "visible": _coerce_bool,
            "tlx": _coerce_float,
            "tly": _coerce_float,
            "sizew": lambda v: _coerce_float(v, 0.0),
            "sizeh": lambda v: _coerce_float(v, 0.0),
            "radius": lambda v: _coerce_float(v, 0.0),
            "count": _coerce_count,
            "posFn": MotionKind.parse,
            "dirx": lambda v: _coerce_float(v, *DIRECTION_RANGE),
            "diry": lambda v: _coerce_float(v, *DIRECTION_RANGE),
            "color": parse_color,
            "tail": lambda v: _coerce_float(v, *TRAIL_RANGE),
        }

        values = {}
        for key, coerce in coercers.items():
            if key not in data:
                continue
            try:
                values[key] = coerce(data[key])
            except MalformedSettings as e:
                logging.warning(f"Settings field '{key}' is malformed ({e}); using the default.")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["posFn"] = self.posFn.value
        data["color"] = format_color(self.color)
        return data


def parse_snapshot(items: Any) -> List[RegionSettings]:
    """Parses one configuration snapshot (a list of region settings)."""
    if not isinstance(items, list):
        logging.warning(f"Settings snapshot must be a list, got {type(items).__name__}; ignoring it.")
        return []
    if len(items) > MAX_REGIONS:
        logging.warning(f"Snapshot has {len(items)} regions; only the first {MAX_REGIONS} are used.")
    return [RegionSettings.from_dict(item) for item in items[:MAX_REGIONS]]


def load_settings(path: str) -> List[RegionSettings]:
    """Loads a snapshot from a JSON file."""
    logging.info(f"Loading region settings from {path}...")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logging.error(f"Settings file not found at {path}.")
        raise
    except (json.JSONDecodeError, UnicodeDecodeError):
        logging.error(f"Error decoding JSON from {path}.")
        raise
    snapshot = parse_snapshot(data)
    logging.info(f"Loaded {len(snapshot)} region settings.")
    return snapshot


def save_settings(path: str, snapshot: List[RegionSettings]) -> None:
    """Writes a snapshot as a JSON list."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([s.to_dict() for s in snapshot], f, indent=2)
    logging.info(f"Saved {len(snapshot)} region settings to {path}.")


class SettingsWatcher:
    """
    Polls a settings file and hands every new version to a callback.

    This is how another process (an editor, a control panel) reconfigures a
    running simulation. The callback runs on the watcher thread, so it must
    be thread-safe; `SimulationDriver.submit` is.
    """
    def __init__(self, path: str, on_snapshot: Callable[[List[RegionSettings]], None], interval: float = 0.5):
        self.path = path
        self.on_snapshot = on_snapshot
        self.interval = interval
        self._last_mtime: Optional[float] = self._mtime()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="settings-watcher", daemon=True)

    def _mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self.path)
        except OSError:
            return None

    def poll(self) -> bool:
        """Checks the file once. Returns True if a new snapshot was delivered."""
        mtime = self._mtime()
        if mtime is None or mtime == self._last_mtime:
            return False
        self._last_mtime = mtime
        try:
            snapshot = load_settings(self.path)
        except (OSError, ValueError) as e:
            # The file may be mid-write or not UTF-8; the next change will be picked up.
            logging.warning(f"Could not reload settings from {self.path}: {e}")
            return False
        self.on_snapshot(snapshot)
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.poll()

    def start(self) -> None:
        logging.info(f"Watching {self.path} for settings changes every {self.interval}s.")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()
