"""
Parameter editing and persistence.

The persisted form of a tree is a JSON object keyed by group name. Each value
is either a flat map of scalar/array values (trunk, leafGroup, leafShape,
leafColor) or a list of such maps (the repeated branch levels):

    {
        "trunk": {"seed": 200, "growthPattern": "dichotomous", "color": "#a08000", ...},
        "branch": [{"length": [0.4, 0.4], "symmetry": 2, ...}],
        "leafGroup": {...},
        "leafShape": {...},
        "leafColor": {...}
    }

Loading is best-effort: unknown keys are ignored and a value of the wrong type
is reported through the module logger and leaves the field at its prior value.

`ParameterStore` is the mutable editing layer on top of the frozen snapshots in
`sapling.config`. It notifies subscribers whenever a value actually changes;
the regeneration policy is up to the subscriber.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import fields, replace
from enum import Enum
from typing import Any, Union

from pydantic import StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter, ValidationError

from sapling.config import (
    GROUP_ATTRS,
    GROUP_TYPES,
    BranchParams,
    GrowthPattern,
    PropKind,
    TreeParams,
)

logger = logging.getLogger(__name__)

_Number = Union[StrictInt, StrictFloat]

# Strict validators per kind; JSON numbers may arrive as int or float.
_ADAPTERS: dict[PropKind, TypeAdapter] = {
    PropKind.BOOLEAN: TypeAdapter(StrictBool),
    PropKind.INTEGER: TypeAdapter(StrictInt),
    PropKind.FLOAT: TypeAdapter(_Number),
    PropKind.COLOR: TypeAdapter(Union[StrictInt, StrictStr]),
    PropKind.RANGE: TypeAdapter(tuple[_Number, _Number]),
    PropKind.ENUM: TypeAdapter(Union[StrictInt, StrictStr]),
}

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")
_RGB_COLOR = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$")

Listener = Callable[[], None]


def to_camel(name: str) -> str:
    """snake_case field name -> camelCase JSON key."""
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


def color_to_hex(color: int) -> str:
    """Packed 0xRRGGBB integer -> '#rrggbb'."""
    return f"#{color & 0xFFFFFF:06x}"


def parse_color(value: int | str) -> int:
    """
    Parse a color from its packed integer or string form.

    Accepts '#rrggbb', '#rgb' and 'rgb(r,g,b)'.

    Raises:
        ValueError: If the string is not a recognized color
    """
    if isinstance(value, int):
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"color out of range: {value}")
        return value
    text = value.strip()
    match = _HEX_COLOR.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        return int(digits, 16)
    match = _RGB_COLOR.match(text)
    if match:
        r, g, b = (min(255, int(c)) for c in match.groups())
        return (r << 16) | (g << 8) | b
    raise ValueError(f"unrecognized color: {value!r}")


def _field_enabled(meta: dict, pattern: GrowthPattern) -> bool:
    if meta["pattern"] is not None and meta["pattern"] != pattern:
        return False
    if meta["exclude_pattern"] is not None and meta["exclude_pattern"] == pattern:
        return False
    return True


def _encode_value(kind: PropKind, value: Any) -> Any:
    match kind:
        case PropKind.BOOLEAN | PropKind.INTEGER | PropKind.FLOAT:
            return value
        case PropKind.COLOR:
            return color_to_hex(value)
        case PropKind.RANGE:
            return [value[0], value[1]]
        case PropKind.ENUM:
            return value.label


def _decode_value(kind: PropKind, meta: dict, raw: Any) -> Any:
    """
    Convert a JSON value to a field value.

    Raises:
        ValidationError: If the JSON type does not match the kind
        ValueError: If the value has the right type but is not acceptable
    """
    value = _ADAPTERS[kind].validate_python(raw)
    match kind:
        case PropKind.BOOLEAN | PropKind.INTEGER:
            return value
        case PropKind.FLOAT:
            return float(value)
        case PropKind.COLOR:
            return parse_color(value)
        case PropKind.RANGE:
            return (float(value[0]), float(value[1]))
        case PropKind.ENUM:
            enum_type: type[Enum] = meta["enum"]
            if isinstance(value, int):
                return enum_type(value)
            for member in enum_type:
                if member.label == value:
                    return member
            raise ValueError(f"unknown enum value: {value}")


def _check_limits(meta: dict, value: Any, path: str, key: str) -> None:
    """Warn about loaded values outside a field's editing range; they are still applied."""
    minimum, maximum = meta["minimum"], meta["maximum"]
    if minimum is None and maximum is None:
        return
    match meta["kind"]:
        case PropKind.INTEGER | PropKind.FLOAT:
            values = (value,)
        case PropKind.RANGE:
            values = value
        case _:
            return
    for v in values:
        if (minimum is not None and v < minimum) or (maximum is not None and v > maximum):
            logger.warning(
                "property %s.%s=%r is outside its editing range [%s, %s]",
                path, key, value, minimum, maximum,
            )
            return


def group_to_json(group: Any, pattern: GrowthPattern) -> dict[str, Any]:
    """Serialize one parameter group, omitting fields disabled for `pattern`."""
    result: dict[str, Any] = {}
    for f in fields(group):
        meta = f.metadata
        if not _field_enabled(meta, pattern):
            continue
        result[to_camel(f.name)] = _encode_value(meta["kind"], getattr(group, f.name))
    return result


def group_from_json(group: Any, data: Any, path: str) -> Any:
    """
    Apply JSON values over an existing group snapshot.

    Args:
        group: Snapshot providing the prior values
        data: Decoded JSON for this group
        path: Group name used in diagnostics

    Returns:
        A new snapshot with every acceptable value applied
    """
    if not isinstance(data, dict):
        logger.warning("incorrect type for group %s: %s", path, type(data).__name__)
        return group

    by_key = {to_camel(f.name): f for f in fields(group)}
    for key, raw in data.items():
        f = by_key.get(key)
        if f is None:
            logger.debug("ignoring unknown property %s.%s", path, key)
            continue
        try:
            value = _decode_value(f.metadata["kind"], f.metadata, raw)
            group = replace(group, **{f.name: value})
            _check_limits(f.metadata, value, path, key)
        except ValidationError:
            logger.warning(
                "incorrect type for property %s.%s: %s", path, key, type(raw).__name__
            )
        except ValueError as e:
            logger.warning("invalid value for property %s.%s: %s", path, key, e)
    return group


def params_to_json(params: TreeParams) -> dict[str, Any]:
    """Serialize a full parameter snapshot to its persisted JSON shape."""
    pattern = params.trunk.growth_pattern
    result: dict[str, Any] = {}
    for key, attr in GROUP_ATTRS.items():
        value = getattr(params, attr)
        if key == "branch":
            result[key] = [group_to_json(level, pattern) for level in value]
        else:
            result[key] = group_to_json(value, pattern)
    return result


def params_from_json(data: Any, base: TreeParams | None = None) -> TreeParams:
    """
    Load a parameter snapshot from its persisted JSON shape.

    Values missing from `data` keep their value in `base` (defaults if None).
    A `branch` list replaces the branch levels, each entry loaded over defaults.
    """
    params = base if base is not None else TreeParams()
    if not isinstance(data, dict):
        logger.warning("parameter document must be an object, got %s", type(data).__name__)
        return params

    changes: dict[str, Any] = {}
    for key, raw in data.items():
        attr = GROUP_ATTRS.get(key)
        if attr is None:
            logger.debug("ignoring unknown parameter group %s", key)
            continue
        if key == "branch":
            if isinstance(raw, list):
                changes[attr] = tuple(
                    group_from_json(BranchParams(), entry, f"branch[{i}]")
                    for i, entry in enumerate(raw)
                )
            else:
                logger.warning("incorrect type for group branch: %s", type(raw).__name__)
        else:
            changes[attr] = group_from_json(getattr(params, attr), raw, key)
    return replace(params, **changes)


class ParameterStore:
    """
    Mutable holder for the current parameter snapshot.

    Every mutation swaps in a new frozen snapshot, so a snapshot handed to a
    generation pass is never changed underneath it.
    """

    def __init__(self, params: TreeParams | None = None):
        self._params = params if params is not None else TreeParams()
        self._listeners: list[Listener] = []

    @property
    def params(self) -> TreeParams:
        return self._params

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set(self, params: TreeParams) -> None:
        if params == self._params:
            return
        self._params = params
        for listener in list(self._listeners):
            listener()

    def set_params(self, params: TreeParams) -> None:
        self._set(params)

    def update(self, group: str, **values: Any) -> None:
        """
        Change values within a non-repeating group.

        Args:
            group: Persisted group key ('trunk', 'leafGroup', ...)
            **values: Field names and new values
        """
        attr = GROUP_ATTRS[group]
        if group == "branch":
            raise ValueError("use update_branch() for branch levels")
        current = getattr(self._params, attr)
        self._set(replace(self._params, **{attr: replace(current, **values)}))

    def update_branch(self, index: int, **values: Any) -> None:
        levels = list(self._params.branch)
        levels[index] = replace(levels[index], **values)
        self._set(replace(self._params, branch=tuple(levels)))

    def push_branch(self) -> None:
        self._set(replace(self._params, branch=self._params.branch + (BranchParams(),)))

    def pop_branch(self) -> None:
        self._set(replace(self._params, branch=self._params.branch[:-1]))

    def insert_branch(self, index: int) -> None:
        levels = list(self._params.branch)
        levels.insert(index, BranchParams())
        self._set(replace(self._params, branch=tuple(levels)))

    def remove_branch(self, index: int) -> None:
        levels = list(self._params.branch)
        del levels[index]
        self._set(replace(self._params, branch=tuple(levels)))

    def reset(self) -> None:
        """Reset every group to its defaults, keeping the number of branch levels."""
        defaults = {
            attr: GROUP_TYPES[key]()
            for key, attr in GROUP_ATTRS.items()
            if key != "branch"
        }
        branch = tuple(BranchParams() for _ in self._params.branch)
        self._set(TreeParams(branch=branch, **defaults))

    def to_json(self) -> dict[str, Any]:
        return params_to_json(self._params)

    def from_json(self, data: Any) -> None:
        self._set(params_from_json(data, self._params))
