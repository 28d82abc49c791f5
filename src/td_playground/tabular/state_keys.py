from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
import json
import math
from typing import Any, Union


@dataclass(frozen=True)
class GridState:
    """
    A cell on a discrete grid.

    Used by the grid navigation, slip and cliff worlds, and by the physics world for its observed (position bin, velocity bin) pair.

    :param x: Column index (or position bin).
        :type x: int
    :param y: Row index, growing downward (or velocity bin).
        :type y: int
    """
    x: int
    y: int


@dataclass(frozen=True)
class PhysicsState:
    """
    A raw continuous reading of the physics world.

    :param position: Position in [-1.2, 0.6].
        :type position: float
    :param velocity: Velocity in [-0.07, 0.07].
        :type velocity: float
    """
    position: float
    velocity: float


State = Union[str, GridState, PhysicsState, Any]


def _round_half_up(value: float) -> int:
    # halves go toward +inf: 0.5 -> 1, -0.5 -> 0, -1.5 -> -1 (round() would give banker's rounding)
    return int(math.floor(value + 0.5))


def _is_integer_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return float(value) == int(value)
    except (TypeError, ValueError, OverflowError):
        return False


def _to_jsonable(obj: Any) -> Any:
    """
    Turn an arbitrary state into something json.dumps accepts.

    :param obj: Any object.
        :type obj: Any

    :return: A JSON-friendly structure.
        :rtype: Any
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    if hasattr(obj, "tolist"):  # numpy arrays and scalars
        return _to_jsonable(obj.tolist())
    if hasattr(obj, "__dict__"):
        return {k: _to_jsonable(v) for k, v in vars(obj).items() if not k.startswith("_")}
    return repr(obj)


def _field(state: Any, name: str) -> Any:
    if isinstance(state, dict):
        return state.get(name)
    return getattr(state, name, None)


def encode_state(state: State) -> str:
    """
    Canonicalize a state into a hashable string key.

    Rules, applied in order:
        1. strings pass through unchanged
        2. anything with integer-like x and y -> "x,y"
        3. anything with position and velocity -> "round(10*position),round(10*velocity)"
        4. otherwise a canonical JSON serialization (sorted keys)

    The function never raises. Rule 4 degrades distinguishability for odd inputs, but a key always comes back.

    :param state: Environment state (GridState, PhysicsState, string, mapping or any object).
        :type state: State

    :return: Canonical state key.
        :rtype: str
    """
    if isinstance(state, str):
        return state

    if isinstance(state, GridState):
        return f"{int(state.x)},{int(state.y)}"

    x, y = _field(state, "x"), _field(state, "y")
    if x is not None and y is not None and _is_integer_like(x) and _is_integer_like(y):
        return f"{int(x)},{int(y)}"

    position, velocity = _field(state, "position"), _field(state, "velocity")
    if position is not None and velocity is not None:
        try:
            return f"{_round_half_up(float(position) * 10)},{_round_half_up(float(velocity) * 10)}"
        except (TypeError, ValueError, OverflowError):
            pass  # not numeric, use the structural key

    try:
        return json.dumps(_to_jsonable(state), sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return repr(state)
