from __future__ import annotations

from td_playground.tabular.agent import NextActionTiming, TabularAgent
from td_playground.tabular.state_keys import State


class QLearningAgent(TabularAgent):
    """
    Tabular Q-learning agent with ε-greedy exploration.

        - Tabular: Q[s][a] stored in a lazily populated table.
        - Off-policy TD control: you may behave ε-greedily to explore, but the update target assumes greedy behaviour
          at the next state.

    Update:
        Q(s,a) <- Q(s,a) + alpha * [r + gamma * max_a' Q(s',a') - Q(s,a)]

    Important, see the max in 'learn'. This is the difference between Q-learning and SARSA.
    Even though the selected action 'a' is ε-greedy (exploratory), the update uses max_a' Q(s',a') (greedy target policy).
    So:
        - behaviour policy \\mu: ε-greedy (used to collect data)
        - target policy \\pi: greedy (used inside the update)

    Since the target never looks at the action actually taken next, the driver can draw it after the update.
    """

    name = "qlearning"
    next_action_timing = NextActionTiming.AFTER_UPDATE
    explore_unseen_outside_training = False

    def learn(self, state: State, action: str, reward: float, next_state: State, *args) -> float:
        """
        Apply the Q-learning update.

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
        key, next_key = self._prepare(state, action, next_state)

        max_next = max(self.Q.get_row(next_key).values())  # this is where Q-learning differs from SARSA
        target = float(reward) + self.gamma * max_next
        return self._apply(key, action, target)
