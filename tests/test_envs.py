import math

import numpy as np
import pytest

from td_playground.envs import CliffWorld, Environment, EnvironmentKind, GridWorld, PhysicsWorld, SlipWorld
from td_playground.tabular import GridState


def test_gridworld_step_penalty_walls_and_goal() -> None:
    """
    -1 per step, walls clip, +100 and done at the bottom-right goal.
    """
    env = GridWorld(size=3)
    assert env.reset() == GridState(0, 0)

    r = env.step("up")
    assert r.next_state == GridState(0, 0)
    assert r.reward == -1.0 and not r.done

    total = 0.0
    for a in ("right", "right", "down", "down"):
        r = env.step(a)
        total += r.reward

    assert r.done
    assert r.next_state == env.goal == GridState(2, 2)
    assert r.reward == 100.0
    assert total == 97.0
    assert env.is_done
    assert env.is_terminal_state(GridState(2, 2))
    assert not env.is_terminal_state(GridState(1, 2))


def test_step_after_done_is_a_noop() -> None:
    env = GridWorld(size=2)
    env.step("right")
    env.step("down")

    r = env.step("left")
    assert r.next_state == GridState(1, 1)
    assert r.reward == 0.0
    assert r.done


def test_invalid_action_raises() -> None:
    for env in (GridWorld(), SlipWorld(seed=0), CliffWorld(), PhysicsWorld()):
        with pytest.raises(ValueError):
            env.step("jump")


def test_slipworld_without_slip_follows_the_requested_action() -> None:
    """
    Map:
        S F H F
        F F F H
        F F F H
        H F F G
    """
    env = SlipWorld(slippery=False, seed=0)
    env.reset()

    path = ("down", "down", "right", "down", "right", "right")
    rewards = list()
    for a in path:
        r = env.step(a)
        assert env.last_applied_action == a
        rewards.append(r.reward)

    assert r.next_state == GridState(3, 3)
    assert r.done
    assert rewards[-1] == 1.0
    assert np.allclose(rewards[:-1], -0.001)


def test_slipworld_hole_ends_the_episode() -> None:
    env = SlipWorld(slippery=False)
    env.step("right")
    r = env.step("right")

    assert r.next_state == GridState(2, 0)
    assert r.reward == -1.0
    assert r.done
    assert env.is_terminal_state(GridState(2, 0))
    assert env.is_terminal_state(GridState(3, 3))
    assert not env.is_terminal_state(GridState(1, 1))


def test_slipworld_slip_replaces_the_action() -> None:
    env = SlipWorld(slippery=True, slip_probability=1.0, seed=0)
    for _ in range(100):
        if env.is_done:
            env.reset()
        env.step("right")
        assert env.last_applied_action != "right"


def test_slipworld_slip_frequency() -> None:
    """
    About 20% of the requested actions are replaced.
    """
    env = SlipWorld(slippery=True, slip_probability=0.2, seed=1)
    slips = 0
    n = 4000
    for _ in range(n):
        if env.is_done:
            env.reset()
        env.step("left")
        slips += env.last_applied_action != "left"

    assert 0.15 < slips / n < 0.25


def test_cliffworld_every_cliff_cell_sends_back_to_start() -> None:
    """
    Stepping onto any cliff cell: -100, done, and the returned state is the start cell.
    """
    for x in range(1, 11):
        env = CliffWorld()
        env.reset()
        env.step("up")
        for _ in range(x):
            env.step("right")

        r = env.step("down")
        assert r.reward == -100.0
        assert r.done
        assert r.next_state == env.start == GridState(0, 3)
        assert env.state == env.start


def test_cliffworld_safe_path_reaches_goal() -> None:
    env = CliffWorld()
    env.reset()

    total = 0.0
    for a in ["up"] + ["right"] * 11 + ["down"]:
        r = env.step(a)
        total += r.reward

    assert r.done
    assert r.next_state == GridState(11, 3)
    assert r.reward == 0.0
    assert total == -12.0


def test_cliffworld_start_step_onto_cliff() -> None:
    env = CliffWorld()
    r = env.step("right")
    assert (r.reward, r.done, r.next_state) == (-100.0, True, GridState(0, 3))


def test_physics_reset_state_is_binned() -> None:
    """
    Start position -0.5 -> (0.7/1.8)*10 -> bin 3, velocity 0 -> bin 5.
    """
    env = PhysicsWorld()
    assert env.reset() == GridState(3, 5)
    assert env.raw_state.position == -0.5
    assert env.raw_state.velocity == 0.0


def test_physics_reward_shaping() -> None:
    env = PhysicsWorld()
    r = env.step("right")

    v = 0.001 - 0.0025 * math.cos(3 * -0.5)
    p = -0.5 + v
    expected = -1.0 + 0.5 + 2 * p

    assert np.isclose(a=env.velocity, b=v)
    assert np.isclose(a=r.reward, b=expected)
    assert not r.done


def test_physics_stays_in_bounds() -> None:
    env = PhysicsWorld()
    rng = np.random.default_rng(0)

    for _ in range(2000):
        if env.is_done:
            env.reset()
        r = env.step(env.actions[int(rng.integers(0, 3))])
        assert -1.2 <= env.position <= 0.6
        assert -0.07 <= env.velocity <= 0.07
        assert 0 <= r.next_state.x < 10 and 0 <= r.next_state.y < 10


def test_physics_left_wall_is_inelastic() -> None:
    env = PhysicsWorld()
    env.position = -1.19
    env.velocity = -0.07

    env.step("left")

    assert env.position == -1.2
    assert env.velocity == 0.0


def test_physics_goal_reward() -> None:
    env = PhysicsWorld()
    env.position = 0.49
    env.velocity = 0.07

    r = env.step("right")

    assert r.done
    assert r.reward == 100.0
    assert 0.5 <= env.position <= 0.6


def test_physics_internal_ceiling() -> None:
    env = PhysicsWorld(max_episode_steps=200)

    for i in range(200):
        r = env.step("none")
        if i < 199:
            assert not r.done

    assert r.done
    assert r.reward == -50.0
    assert env.steps == 200


def test_base_environment_methods_are_not_implemented() -> None:
    class Bare(Environment):
        kind = EnvironmentKind.GRID
        actions = ("a",)

    env = Bare()
    with pytest.raises(NotImplementedError):
        env.reset()
    with pytest.raises(NotImplementedError):
        env.step("a")
    with pytest.raises(NotImplementedError):
        _ = env.state
    with pytest.raises(NotImplementedError):
        env.is_terminal_state(None)

    assert not env.supports_terminal_check


def test_terminal_check_support() -> None:
    assert GridWorld().supports_terminal_check
    assert SlipWorld().supports_terminal_check
    assert CliffWorld().supports_terminal_check
    assert not PhysicsWorld().supports_terminal_check
