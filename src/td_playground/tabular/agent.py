from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence

import numpy as np

from td_playground.tabular.state_keys import State, encode_state
from td_playground.tabular.value_table import ValueTable


class NextActionTiming(Enum):
    """
    When the episode driver draws the next action relative to the learning update.

    - BEFORE_UPDATE: on-policy target needs the concrete next action a' (SARSA)
    - AFTER_UPDATE: the target does not depend on which a' is taken (Q-learning, Expected SARSA)
    """
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"


class TabularAgent:
    """
    Tabular agent with ε-greedy behaviour over a lazily populated value table.

    This is the part the three learners share:
        - the value table Q[state_key][action]
        - ε-greedy action selection with deterministic tie-breaking (first action in the fixed order wins)
        - the incremental TD update Q(s,a) <- Q(s,a) + alpha * [target - Q(s,a)]

    Subclasses only decide the target (see 'learn').

    Exploration on unseen states:
        The first time a state is seen its row is created with zeros. All actions are tied at that point, so instead
        of always returning the first action we explore uniformly. Q-learning and Expected SARSA do this only while
        training; SARSA does it even with training off ('explore_unseen_outside_training').

    :param actions: Ordered action set of the environment.
        :type actions: Sequence[str]
    :param alpha: Learning rate in (0, 1].
        :type alpha: float
    :param gamma: Discount factor in [0, 1].
        :type gamma: float
    :param epsilon: Exploration probability in [0, 1].
        :type epsilon: float
    :param seed: RNG seed for action selection.
        :type seed: int | None
    """

    name = "tabular"
    next_action_timing = NextActionTiming.AFTER_UPDATE
    explore_unseen_outside_training = False

    def __init__(
        self,
        actions: Sequence[str],
        alpha: float = 0.1,
        gamma: float = 0.99,
        epsilon: float = 0.1,
        seed: int | None = None,
    ):
        self.actions = tuple(actions)
        self.n_actions = len(self.actions)

        if not (0.0 < alpha <= 1.0):
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        if not (0.0 <= gamma <= 1.0):
            raise ValueError(f"gamma must be in [0, 1], got {gamma}")
        if not (0.0 <= epsilon <= 1.0):
            raise ValueError(f"epsilon must be in [0, 1], got {epsilon}")

        self.alpha = float(alpha)
        self.gamma = float(gamma)
        self.epsilon = float(epsilon)
        self.training = True

        self.rng = np.random.default_rng(seed)
        self.Q = ValueTable(self.actions)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(alpha={self.alpha}, gamma={self.gamma}, epsilon={self.epsilon}, "
                f"training={self.training}, states={len(self.Q)})")

    @property
    def q_table(self) -> dict[str, dict[str, float]]:
        """
        Snapshot of the full value table for inspection/rendering.
        """
        return self.Q.as_dict()

    def reset(self) -> None:
        """
        Forget everything learned. Hyperparameters and the training flag are left as they are.
        """
        self.Q.clear()

    def random_action(self) -> str:
        return self.actions[int(self.rng.integers(low=0, high=self.n_actions))]

    def _greedy(self, row: Mapping[str, float]) -> str:
        # strict '>' -> on ties the first action in the fixed order wins
        best_action = self.actions[0]
        best_value = -np.inf
        for a in self.actions:
            value = row.get(a, 0.0)
            if value > best_value:
                best_value = value
                best_action = a
        return best_action

    def act(self, state: State) -> str:
        """
        Select an action using ε-greedy.

        1. While training, with probability epsilon: explore -> random action
        2. Unseen state: create its row; explore if training (always, for SARSA)
        3. Else: exploit -> first action with the maximum value

        :param state: Current state.
            :type state: State

        :return: Action from the action set.
            :rtype: str
        """
        # Exploration
        if self.training and self.rng.random() < self.epsilon:
            return self.random_action()

        key = encode_state(state)
        if key not in self.Q:
            row = self.Q.get_row(key)
            if self.training or self.explore_unseen_outside_training:
                return self.random_action()
            return self._greedy(row)

        # Exploitation
        return self._greedy(self.Q.get_row(key))

    def get_greedy_action(self, state: State) -> str | None:
        """
        Greedy action for inspection, or None if the state was never visited.

        No exploration and no row creation, so it is safe to call while rendering a policy.

        :param state: State (or an already encoded state key).
            :type state: State

        :return: Greedy action or None.
            :rtype: str | None
        """
        row = self.Q.peek_row(encode_state(state))
        if row is None:
            return None
        return self._greedy(row)

    def _prepare(self, state: State, action: str, next_state: State) -> tuple[str, str]:
        """
        Make sure both rows exist before any target is computed.

        :return: (state_key, next_state_key)
            :rtype: tuple[str, str]
        """
        if action not in self.actions:
            raise ValueError(f"Invalid action {action!r}. Must be one of {self.actions}.")

        key = encode_state(state)
        next_key = encode_state(next_state)
        self.Q.get_row(key)
        self.Q.get_row(next_key)
        return key, next_key

    def _apply(self, key: str, action: str, target: float) -> float:
        current = self.Q.get(key, action)
        td_error = target - current
        new_value = current + self.alpha * td_error
        self.Q.set(key, action, new_value)
        return new_value

    def learn(self, state: State, action: str, reward: float, next_state: State, *args) -> float:
        raise NotImplementedError(f"{type(self).__name__} does not implement learn()")
