from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from td_playground.envs.base import Environment
from td_playground.tabular.agent import NextActionTiming, TabularAgent


@dataclass
class EpisodeResult:
    """
    What one episode produced.

    :param total_reward: Accumulated reward (after the optional reward adjustment).
        :type total_reward: float
    :param steps: Number of environment steps taken.
        :type steps: int
    :param done: Whether the environment reached a terminal state (False if the step cap cut the episode).
        :type done: bool
    :param transitions: Ordered (state, action, reward) records, rewards as the environment returned them.
        :type transitions: list[tuple[Any, str, float]]
    """
    total_reward: float
    steps: int
    done: bool
    transitions: list[tuple[Any, str, float]] = field(default_factory=list)


def td_step(agent: TabularAgent, state: Any, action: str, reward: float, next_state: Any) -> tuple[float, str]:
    """
    One learning step with the action sequencing the learner asks for.

    On-policy (BEFORE_UPDATE), the update needs A_{t+1}:
        select A' (from the same ε-greedy behaviour policy)
        update using (S, A, R, S', A')
    Otherwise:
        update using (S, A, R, S')
        select A'

    :param agent: Learner.
        :type agent: TabularAgent
    :param state: S_t.
        :type state: Any
    :param action: A_t.
        :type action: str
    :param reward: R_{t+1}.
        :type reward: float
    :param next_state: S_{t+1}.
        :type next_state: Any

    :return: (new value estimate of Q(S_t, A_t), next action A_{t+1})
        :rtype: tuple[float, str]
    """
    if agent.next_action_timing is NextActionTiming.BEFORE_UPDATE:
        next_action = agent.act(next_state)
        value = agent.learn(state, action, reward, next_state, next_action)
    else:
        value = agent.learn(state, action, reward, next_state)
        next_action = agent.act(next_state)
    return value, next_action


def run_episode(
    env: Environment,
    agent: TabularAgent,
    max_steps: int,
    reward_adjust: Callable[[float], float] | None = None,
) -> EpisodeResult:
    """
    Run one episode with online TD updates.

    The loop is:
        reset, select A
        repeat while not done and steps < max_steps:
            step -> observe S', R
            learn + select A' (order depends on the learner, see 'td_step')

    :param env: Environment implementing the contract.
        :type env: Environment
    :param agent: Learner.
        :type agent: TabularAgent
    :param max_steps: Max steps per episode (safety cap, separate from any environment-internal ceiling).
        :type max_steps: int
    :param reward_adjust: Optional map applied to each reward before it is added to the episode total.
        The learner always sees the raw reward.
        :type reward_adjust: Callable[[float], float] | None

    :return: EpisodeResult
        :rtype: EpisodeResult
    """
    state = env.reset()
    action = agent.act(state)

    total_reward = 0.0
    steps = 0
    done = False
    transitions: list[tuple[Any, str, float]] = []

    while not done and steps < max_steps:
        result = env.step(action)
        next_state, reward, done = result.next_state, float(result.reward), bool(result.done)

        _, next_action = td_step(agent, state, action, reward, next_state)

        transitions.append((state, action, reward))
        total_reward += reward_adjust(reward) if reward_adjust is not None else reward
        steps += 1

        state, action = next_state, next_action

    return EpisodeResult(total_reward=total_reward, steps=steps, done=done, transitions=transitions)


def run_greedy_episode(
    env: Environment,
    agent: TabularAgent,
    max_steps: int,
    reward_adjust: Callable[[float], float] | None = None,
) -> EpisodeResult:
    """
    Evaluation rollout: training off, ε=0, no updates. The agent's settings are restored afterwards.

    :param env: Environment implementing the contract.
        :type env: Environment
    :param agent: Learner to evaluate.
        :type agent: TabularAgent
    :param max_steps: Max steps per episode.
        :type max_steps: int
    :param reward_adjust: Same meaning as in 'run_episode'.
        :type reward_adjust: Callable[[float], float] | None

    :return: EpisodeResult
        :rtype: EpisodeResult
    """
    old_eps, old_training = agent.epsilon, agent.training
    agent.epsilon = 0.0
    agent.training = False
    try:
        state = env.reset()
        total_reward = 0.0
        steps = 0
        done = False
        transitions: list[tuple[Any, str, float]] = []

        while not done and steps < max_steps:
            action = agent.act(state)
            result = env.step(action)
            reward, done = float(result.reward), bool(result.done)

            transitions.append((state, action, reward))
            total_reward += reward_adjust(reward) if reward_adjust is not None else reward
            steps += 1
            state = result.next_state

        return EpisodeResult(total_reward=total_reward, steps=steps, done=done, transitions=transitions)
    finally:
        agent.epsilon = old_eps
        agent.training = old_training
