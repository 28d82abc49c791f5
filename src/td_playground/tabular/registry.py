from __future__ import annotations

from typing import Sequence

from td_playground.tabular.agent import TabularAgent
from td_playground.tabular.expected_sarsa import ExpectedSARSAgent
from td_playground.tabular.q_learning import QLearningAgent
from td_playground.tabular.sarsa import SARSAgent

AGENTS: dict[str, type[TabularAgent]] = {
    QLearningAgent.name: QLearningAgent,
    SARSAgent.name: SARSAgent,
    ExpectedSARSAgent.name: ExpectedSARSAgent,
}


def make_agent(
    name: str,
    actions: Sequence[str],
    alpha: float = 0.1,
    gamma: float = 0.99,
    epsilon: float = 0.1,
    seed: int | None = None,
) -> TabularAgent:
    """
    Build a learner by name ("qlearning", "sarsa" or "expectedsarsa").

    :param name: Learner name, case-insensitive. Dashes and underscores are ignored ("expected-sarsa" works).
        :type name: str
    :param actions: Ordered action set.
        :type actions: Sequence[str]

    :return: A fresh agent with an empty value table.
        :rtype: TabularAgent
    """
    normalized = str(name).lower().replace("-", "").replace("_", "")
    try:
        cls = AGENTS[normalized]
    except KeyError:
        raise ValueError(f"Unknown learner {name!r}. Choose one of {sorted(AGENTS)}.") from None
    return cls(actions=actions, alpha=alpha, gamma=gamma, epsilon=epsilon, seed=seed)
