from __future__ import annotations

from td_playground.tabular.agent import NextActionTiming, TabularAgent
from td_playground.tabular.state_keys import State


class SARSAgent(TabularAgent):
    """
    Tabular SARSA agent with ε-greedy exploration.

        - SARSA (on-policy TD control): updates using the next action actually chosen by the same behaviour policy

    Update:
        Q(s,a) <- Q(s,a) + alpha * [r + gamma * Q(s',a') - Q(s,a)]

    The driver has to draw a' before calling 'learn', hence NextActionTiming.BEFORE_UPDATE.

    SARSA also explores on a never-seen state even when training is off.
    """

    name = "sarsa"
    next_action_timing = NextActionTiming.BEFORE_UPDATE
    explore_unseen_outside_training = True

    def learn(self, state: State, action: str, reward: float, next_state: State, next_action: str | None = None) -> float:
        """
        Apply the SARSA update.

        :param state: Current state.
            :type state: State
        :param action: Action taken.
            :type action: str
        :param reward: Observed reward.
            :type reward: float
        :param next_state: Next state.
            :type next_state: State
        :param next_action: Next action chosen by the same behaviour policy.
            :type next_action: str

        :return: The new estimate Q(s,a).
            :rtype: float
        """
        if next_action is None:
            raise ValueError("SARSA needs the next action chosen by the policy.")
        if next_action not in self.actions:
            raise ValueError(f"Invalid next_action {next_action!r}. Must be one of {self.actions}.")

        key, next_key = self._prepare(state, action, next_state)

        target = float(reward) + self.gamma * self.Q.get(next_key, next_action)
        return self._apply(key, action, target)
