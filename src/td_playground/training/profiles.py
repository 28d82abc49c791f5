from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from td_playground.envs.base import Environment, EnvironmentKind
from td_playground.tabular.agent import TabularAgent
from td_playground.tabular.registry import make_agent
from td_playground.tabular.state_keys import GridState, State
from td_playground.training.episode import EpisodeResult
from td_playground.training.session import TrainingSession


@dataclass(frozen=True)
class Hyperparameters:
    """
    :param alpha: Learning rate.
        :type alpha: float
    :param gamma: Discount factor.
        :type gamma: float
    :param epsilon: Exploration probability.
        :type epsilon: float
    """
    alpha: float
    gamma: float
    epsilon: float

    def apply_to(self, agent: TabularAgent) -> None:
        agent.alpha = self.alpha
        agent.gamma = self.gamma
        agent.epsilon = self.epsilon


class StateTracking(Enum):
    """
    Which states the policy-stability check looks at.
    """
    NONE = "none"  # no stability check at all
    VALUE_TABLE = "value_table"  # every key in the agent's table, newly seen states count as a change
    GRID_CELLS = "grid_cells"  # every cell of the grid, visited or not


@dataclass(frozen=True)
class EnvironmentProfile:
    """
    Fixed per-environment training policy: hyperparameters, caps, success predicate and stop rule.

    :param kind: Environment this profile belongs to.
        :type kind: EnvironmentKind
    :param agent_defaults: Hyperparameters for a freshly created agent.
        :type agent_defaults: Hyperparameters
    :param training_params: Hyperparameters applied when a training run starts.
        :type training_params: Hyperparameters
    :param max_steps: Episode driver step cap.
        :type max_steps: int
    :param max_episodes: Hard episode cap of a training run.
        :type max_episodes: int
    :param final_epsilon: ε left on the agent once training stops.
        :type final_epsilon: float
    :param tracking: Which states the stability check tracks.
        :type tracking: StateTracking
    :param stability_from: First episode (1-based) at which stability is checked.
        :type stability_from: int
    :param success: Success predicate on a finished episode.
        :type success: Callable[[EpisodeResult], bool]
    :param stop_rule: Returns a reason string when training should stop, else None. The hard cap is handled apart.
        :type stop_rule: Callable[[TrainingSession], str | None]
    :param reward_adjust: Optional map applied to each step reward before it enters the episode total.
        :type reward_adjust: Callable[[float], float] | None
    :param window: Rolling window capacity.
        :type window: int
    """
    kind: EnvironmentKind
    agent_defaults: Hyperparameters
    training_params: Hyperparameters
    max_steps: int
    max_episodes: int
    final_epsilon: float
    tracking: StateTracking
    stability_from: int
    success: Callable[[EpisodeResult], bool]
    stop_rule: Callable[[TrainingSession], "str | None"]
    reward_adjust: Callable[[float], float] | None = None
    window: int = 100


# The stop rules look at the last 50 entries of the rolling windows
RATE_WINDOW = 50
SLIP_STEP_REWARD = -0.001
PHYSICS_MAX_STEPS = 330


def _grid_stop(session: TrainingSession) -> str | None:
    if session.stable_episodes >= 50:
        return "Policy stable for 50 episodes"
    return None


def _slip_stop(session: TrainingSession) -> str | None:
    if session.episode < 150:
        return None
    if session.stable_episodes >= 30:
        return f"Policy stable for {session.stable_episodes} episodes"
    rate = session.success_rate(last=RATE_WINDOW)
    if rate >= 0.85 and session.episode > 200:
        return f"Success rate {rate * 100:.1f}% for {RATE_WINDOW} episodes"
    return None


def _cliff_stop(session: TrainingSession) -> str | None:
    if session.episode < 100:
        return None
    avg = session.average_reward(last=RATE_WINDOW)
    if avg >= -14 and session.episode > 150:
        return f"Average reward {avg:.1f} (near optimal)"
    if session.stable_episodes >= 30:
        return f"Policy stable for {session.stable_episodes} episodes"
    return None


def _physics_stop(session: TrainingSession) -> str | None:
    if session.episode < 100:
        return None
    rate = session.success_rate(last=RATE_WINDOW)
    if rate >= 0.65 and session.episode > 200:
        return f"Success rate {rate * 100:.1f}% for {RATE_WINDOW} episodes"
    return None


def _ignore_step_penalty(reward: float) -> float:
    # the slip world's -0.001 step cost does not count toward the episode total
    return 0.0 if reward == SLIP_STEP_REWARD else reward


PROFILES: dict[EnvironmentKind, EnvironmentProfile] = {
    EnvironmentKind.GRID: EnvironmentProfile(
        kind=EnvironmentKind.GRID,
        agent_defaults=Hyperparameters(alpha=0.1, gamma=0.99, epsilon=0.1),
        training_params=Hyperparameters(alpha=0.1, gamma=0.9, epsilon=0.1),
        max_steps=100,
        max_episodes=500,
        final_epsilon=0.0,
        tracking=StateTracking.VALUE_TABLE,
        stability_from=1,
        success=lambda r: r.total_reward >= 0.9,
        stop_rule=_grid_stop,
    ),
    EnvironmentKind.SLIP: EnvironmentProfile(
        kind=EnvironmentKind.SLIP,
        agent_defaults=Hyperparameters(alpha=0.2, gamma=0.99, epsilon=0.3),
        training_params=Hyperparameters(alpha=0.3, gamma=0.99, epsilon=0.4),
        max_steps=200,
        max_episodes=800,
        final_epsilon=0.05,
        tracking=StateTracking.GRID_CELLS,
        stability_from=150,
        success=lambda r: r.total_reward > 0.9,
        stop_rule=_slip_stop,
        reward_adjust=_ignore_step_penalty,
    ),
    EnvironmentKind.CLIFF: EnvironmentProfile(
        kind=EnvironmentKind.CLIFF,
        agent_defaults=Hyperparameters(alpha=0.5, gamma=0.9, epsilon=0.1),
        training_params=Hyperparameters(alpha=0.5, gamma=0.9, epsilon=0.1),
        max_steps=200,
        max_episodes=500,
        final_epsilon=0.0,
        tracking=StateTracking.GRID_CELLS,
        stability_from=100,
        success=lambda r: r.total_reward >= -13,  # the optimal path costs 13 steps
        stop_rule=_cliff_stop,
    ),
    EnvironmentKind.PHYSICS: EnvironmentProfile(
        kind=EnvironmentKind.PHYSICS,
        agent_defaults=Hyperparameters(alpha=0.3, gamma=0.99, epsilon=0.3),
        training_params=Hyperparameters(alpha=0.2, gamma=0.99, epsilon=0.3),
        max_steps=PHYSICS_MAX_STEPS,
        max_episodes=2000,
        final_epsilon=0.1,
        tracking=StateTracking.NONE,
        stability_from=1,
        success=lambda r: r.done and r.steps < PHYSICS_MAX_STEPS,
        stop_rule=_physics_stop,
    ),
}


def profile_for(env: Environment | EnvironmentKind) -> EnvironmentProfile:
    """
    Look up the profile of an environment (or of an EnvironmentKind).

    :param env: Environment instance declaring a 'kind', or the kind itself.
        :type env: Environment | EnvironmentKind

    :return: The matching profile.
        :rtype: EnvironmentProfile
    """
    kind = env if isinstance(env, EnvironmentKind) else getattr(env, "kind", None)
    if kind is None:
        raise ValueError(f"{type(env).__name__} does not declare an EnvironmentKind; pass a profile explicitly.")
    return PROFILES[kind]


def tracked_states(profile: EnvironmentProfile, env: Environment, agent: TabularAgent) -> list[State]:
    """
    States the stability check compares between snapshots.

    :return: List of states (GridState cells or value-table keys).
        :rtype: list[State]
    """
    if profile.tracking is StateTracking.VALUE_TABLE:
        return list(agent.Q)
    if profile.tracking is StateTracking.GRID_CELLS:
        rows = int(getattr(env, "rows", getattr(env, "size")))
        cols = int(getattr(env, "cols", getattr(env, "size")))
        return [GridState(x, y) for y in range(rows) for x in range(cols)]
    return []


def create_agent(name: str, env: Environment, seed: int | None = None) -> TabularAgent:
    """
    Build a learner for 'env' with the environment's default hyperparameters and action set.

    :param name: "qlearning", "sarsa" or "expectedsarsa".
        :type name: str
    :param env: Environment the agent will act in.
        :type env: Environment
    :param seed: RNG seed for action selection.
        :type seed: int | None

    :return: Fresh agent.
        :rtype: TabularAgent
    """
    defaults = profile_for(env).agent_defaults
    return make_agent(
        name,
        actions=env.actions,
        alpha=defaults.alpha,
        gamma=defaults.gamma,
        epsilon=defaults.epsilon,
        seed=seed,
    )
