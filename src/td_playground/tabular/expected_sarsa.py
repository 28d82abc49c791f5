from __future__ import annotations

import numpy as np

from td_playground.tabular.agent import NextActionTiming, TabularAgent
from td_playground.tabular.state_keys import State, encode_state


class ExpectedSARSAgent(TabularAgent):
    """
    Tabular Expected SARSA agent with ε-greedy behaviour.

    Instead of using the sampled next action, the target uses the expected next value under ε-greedy:

        E[Q(s',a')] = sum_a' \\mu(a'|s') * Q(s',a')

    So:
    - lower variance than SARSA
    - still reflects exploration (unlike Q-learning)
    - the concrete a' does not enter the target, so the driver draws it after the update
    """

    name = "expectedsarsa"
    next_action_timing = NextActionTiming.AFTER_UPDATE
    explore_unseen_outside_training = False

    def action_probabilities(self, next_state: State) -> np.ndarray:
        """
        ε-greedy probabilities \\mu(a'|s') in the fixed action order.

        - With probability ε: uniform over all actions -> each action gets epsilon/number_of_actions
        - With probability 1-ε: a greedy action; ties split that mass evenly -> each greedy action gets (1-ε)/k

        :param next_state: State whose row is used (created with zeros if missing).
            :type next_state: State

        :return: Probability vector, shape (n_actions,).
            :rtype: np.ndarray
        """
        q = self._row_vector(next_state)
        max_q = np.max(q)
        best_actions = np.flatnonzero(q == max_q)  # exact ties, no tolerance

        if best_actions.size == 0:
            raise RuntimeError("No greedy actions found. Q may contain NaNs.")

        mu = np.full(shape=self.n_actions, fill_value=self.epsilon / self.n_actions, dtype=np.float64)
        mu[best_actions] += (1.0 - self.epsilon) / len(best_actions)
        return mu

    def _row_vector(self, state: State) -> np.ndarray:
        row = self.Q.get_row(encode_state(state))
        return np.array([row[a] for a in self.actions], dtype=np.float64)

    def expected_value(self, next_state: State) -> float:
        """
        Compute E_a'~\\mu[ Q(next_state, a') ] under ε-greedy.
        """
        return float(np.dot(self.action_probabilities(next_state), self._row_vector(next_state)))

    def learn(self, state: State, action: str, reward: float, next_state: State, *args) -> float:
        """
        Apply the Expected SARSA update.

        Update:
        Q(s,a) <- Q(s,a) + alpha * [r + gamma * \\sum_{a'} \\mu(a' | s') Q(s',a') - Q(s,a)]

        :param state: Current state.
            :type state: State
        :param action: Action taken.
            :type action: str
        :param reward: Observed reward.
            :type reward: float
        :param next_state: Next state.
            :type next_state: State

        :return: The new estimate Q(s,a).
            :rtype: float
        """
        key, _ = self._prepare(state, action, next_state)

        target = float(reward) + self.gamma * self.expected_value(next_state)
        return self._apply(key, action, target)
