from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from td_playground.tabular.agent import TabularAgent
from td_playground.tabular.state_keys import State, encode_state

PolicySnapshot = dict[str, "str | None"]


def take_snapshot(agent: TabularAgent, states: Iterable[State]) -> PolicySnapshot:
    """
    Greedy action for every tracked state (None for states the agent never visited).

    :param agent: Agent to inspect. Nothing is created in its table.
        :type agent: TabularAgent
    :param states: States (or state keys) to track.
        :type states: Iterable[State]

    :return: {state_key: greedy action or None}
        :rtype: PolicySnapshot
    """
    return {encode_state(s): agent.get_greedy_action(s) for s in states}


def compare_snapshots(previous: PolicySnapshot, current: PolicySnapshot, missing_counts_as_change: bool) -> bool:
    """
    Did the greedy policy change between two snapshots?

    :param previous: Snapshot from the previous evaluation point.
        :type previous: PolicySnapshot
    :param current: Snapshot from this evaluation point.
        :type current: PolicySnapshot
    :param missing_counts_as_change: If True, a state absent from 'previous' is a change (a newly visited state).
        If False, such states are simply not compared.
        :type missing_counts_as_change: bool

    :return: True if any tracked state's greedy action differs.
        :rtype: bool
    """
    for key, action in current.items():
        if key not in previous:
            if missing_counts_as_change:
                return True
            continue
        if previous[key] != action:
            return True
    return False


@dataclass
class TrainingSession:
    """
    Bookkeeping of one training run, kept apart from what the agent has learned.

    :param window: Capacity of the rolling windows (oldest entries are evicted first).
        :type window: int
    """
    window: int = 100
    episode: int = 0
    stable_episodes: int = 0
    stable_start_episode: int | None = None
    previous_policy: PolicySnapshot = field(default_factory=dict)
    recent_successes: deque = field(init=False)
    recent_steps: deque = field(init=False)
    episode_rewards: list[float] = field(default_factory=list)
    failed_episodes: int = 0
    stop_reason: str | None = None

    def __post_init__(self) -> None:
        if self.window < 1:
            raise ValueError(f"window must be >= 1, got {self.window}")
        self.recent_successes = deque(maxlen=self.window)
        self.recent_steps = deque(maxlen=self.window)

    def record(self, total_reward: float, steps: int, success: bool) -> None:
        self.episode_rewards.append(float(total_reward))
        self.recent_steps.append(int(steps))
        self.recent_successes.append(1 if success else 0)

    def update_stability(self, snapshot: PolicySnapshot, missing_counts_as_change: bool) -> bool:
        """
        Compare with the previous snapshot and update the stability counter.

        Unchanged -> counter + 1, the stable-start marker is set on the first stable episode and then preserved.
        Changed -> counter and marker are cleared.

        :param snapshot: Snapshot taken at this evaluation point.
            :type snapshot: PolicySnapshot
        :param missing_counts_as_change: See 'compare_snapshots'.
            :type missing_counts_as_change: bool

        :return: True if the policy changed.
            :rtype: bool
        """
        changed = compare_snapshots(self.previous_policy, snapshot, missing_counts_as_change)
        if missing_counts_as_change:
            self.previous_policy = dict(snapshot)
        else:
            self.previous_policy.update(snapshot)

        if changed:
            self.stable_episodes = 0
            self.stable_start_episode = None
        else:
            if self.stable_start_episode is None:
                self.stable_start_episode = self.episode
            self.stable_episodes += 1
        return changed

    def success_rate(self, last: int | None = None) -> float:
        """
        Fraction of successful episodes among the most recent ones (0.0 when nothing was recorded).

        :param last: Only look at the last N entries of the rolling window (None = whole window).
            :type last: int | None

        :return: Success rate in [0, 1].
            :rtype: float
        """
        values = list(self.recent_successes)
        if last is not None:
            values = values[-last:]
        if not values:
            return 0.0
        return float(np.mean(values))

    def average_reward(self, last: int = 50) -> float:
        values = self.episode_rewards[-last:]
        if not values:
            return 0.0
        return float(np.mean(values))

    def average_steps(self) -> float:
        if not self.recent_steps:
            return 0.0
        return float(np.mean(self.recent_steps))
