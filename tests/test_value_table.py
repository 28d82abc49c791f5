import json

import pytest

from td_playground.tabular import GridState, PhysicsState, ValueTable, encode_state

ACTIONS = ("up", "down", "left", "right")


def test_new_row_has_every_action_at_zero() -> None:
    """
    A never-visited state gets a full row of zeros on first access.
    """
    table = ValueTable(ACTIONS)

    row = table.get_row("3,4")

    assert row == {"up": 0.0, "down": 0.0, "left": 0.0, "right": 0.0}
    assert "3,4" in table
    assert len(table) == 1


def test_get_on_unseen_pair_does_not_mutate() -> None:
    table = ValueTable(ACTIONS)

    assert table.get("nowhere", "up") == 0.0
    assert table.peek_row("nowhere") is None
    assert "nowhere" not in table
    assert len(table) == 0


def test_set_and_get_roundtrip_and_unknown_action() -> None:
    table = ValueTable(ACTIONS)

    table.set("s", "left", -2.5)
    assert table.get("s", "left") == -2.5
    assert table.get("s", "up") == 0.0

    with pytest.raises(ValueError):
        table.set("s", "jump", 1.0)


def test_clear_and_as_dict_is_a_copy() -> None:
    table = ValueTable(ACTIONS)
    table.set("s", "up", 1.0)

    snapshot = table.as_dict()
    snapshot["s"]["up"] = 99.0
    assert table.get("s", "up") == 1.0

    table.clear()
    assert len(table) == 0


def test_peek_row_is_read_only() -> None:
    table = ValueTable(ACTIONS)
    table.set("s", "up", 1.0)

    row = table.peek_row("s")
    with pytest.raises(TypeError):
        row["up"] = 5.0  # type: ignore[index]


def test_invalid_action_sets() -> None:
    with pytest.raises(ValueError):
        ValueTable(())
    with pytest.raises(ValueError):
        ValueTable(("up", "up"))


def test_encode_state_rules() -> None:
    """
    Strings pass through, grid coordinates become "x,y", continuous states are binned at one decimal.
    """
    assert encode_state("already-a-key") == "already-a-key"
    assert encode_state(GridState(3, 4)) == "3,4"
    assert encode_state({"x": 1, "y": 2}) == "1,2"
    assert encode_state({"x": 1.0, "y": 2.0}) == "1,2"

    # -0.25*10 = -2.5 -> -2 (halves go toward +inf), 0.125*10 = 1.25 -> 1
    assert encode_state(PhysicsState(position=-0.25, velocity=0.125)) == "-2,1"
    assert encode_state({"position": 0.25, "velocity": 0.0}) == "3,0"


def test_encode_state_negative_halves_round_up() -> None:
    """
    Halves go toward +inf on both sides of zero:
        -0.05*10 = -0.5 -> 0 (never "-0")
        -0.15*10 = -1.5 -> -1
         0.05*10 =  0.5 -> 1
    """
    assert encode_state(PhysicsState(position=-0.05, velocity=-0.15)) == "0,-1"
    assert encode_state(PhysicsState(position=0.05, velocity=0.15)) == "1,2"
    assert encode_state({"position": -0.25, "velocity": 0.25}) == "-2,3"


def test_encode_state_structural_fallback() -> None:
    """
    Anything else gets a canonical serialization: same content -> same key, different content -> different key.
    """
    a = encode_state({"b": [1, 2], "a": 1})
    b = encode_state({"a": 1, "b": [1, 2]})
    c = encode_state({"a": 2, "b": [1, 2]})

    assert a == b
    assert a != c
    assert json.loads(a) == {"a": 1, "b": [1, 2]}

    # non-integer coordinates are not treated as grid cells
    assert encode_state({"x": 0.5, "y": 1}) != encode_state({"x": 0, "y": 1})

    # never fails, even on odd inputs
    assert isinstance(encode_state(object()), str)
    assert isinstance(encode_state(None), str)
    assert encode_state(7) == "7"


def test_distinct_grid_states_never_collide() -> None:
    keys = {encode_state(GridState(x, y)) for x in range(12) for y in range(12)}
    assert len(keys) == 144
