"""
Tabular RL agents (lazily populated value tables).

Includes:
- state key encoding for heterogeneous environment states
- the value table Q[state_key][action]
- ε-greedy agent base
- SARSA / Q-learning / Expected SARSA for tabular control
"""

from .state_keys import GridState, PhysicsState, encode_state
from .value_table import ValueTable
from .agent import NextActionTiming, TabularAgent
from .sarsa import SARSAgent
from .q_learning import QLearningAgent
from .expected_sarsa import ExpectedSARSAgent
from .registry import AGENTS, make_agent

__all__ = [
    "GridState",
    "PhysicsState",
    "encode_state",
    "ValueTable",
    "NextActionTiming",
    "TabularAgent",
    "SARSAgent",
    "QLearningAgent",
    "ExpectedSARSAgent",
    "AGENTS",
    "make_agent",
]
