from __future__ import annotations

import numpy as np

from td_playground.envs.base import Environment, EnvironmentKind, StepResult
from td_playground.tabular.state_keys import GridState

DEFAULT_MAP = (
    "SFHF",
    "FFFH",
    "FFFH",
    "HFFG",
)


class SlipWorld(Environment):
    """
    A 4x4 frozen lake with holes, where the ice can make you slip.

    Tiles:
    - S: start, F: frozen (safe), H: hole (episode ends, -1), G: goal (episode ends, +1)

    When slippery, with probability 'slip_probability' the requested action is swapped for one of the other three
    actions (uniformly) before the move is applied. Moves are clipped to the grid.
    Every non-terminal step costs -0.001.

    :param slippery: Enable slipping.
        :type slippery: bool
    :param slip_probability: Chance of replacing the requested action.
        :type slip_probability: float
    :param seed: RNG seed for the slips.
        :type seed: int | None
    """

    kind = EnvironmentKind.SLIP
    actions = ("left", "down", "right", "up")

    step_reward = -0.001
    hole_reward = -1.0
    goal_reward = 1.0

    def __init__(self, slippery: bool = True, slip_probability: float = 0.2, seed: int | None = None):
        self.slippery = bool(slippery)
        self.slip_probability = float(slip_probability)
        if not (0.0 <= self.slip_probability <= 1.0):
            raise ValueError(f"slip_probability must be in [0, 1], got {slip_probability}")

        self.map = DEFAULT_MAP
        self.size = len(self.map)
        self.rng = np.random.default_rng(seed)

        self._state = GridState(0, 0)
        self._done = False
        self.last_applied_action: str | None = None
        self.reset()

    @property
    def state(self) -> GridState:
        return self._state

    def reset(self) -> GridState:
        self._state = GridState(0, 0)
        self._done = False
        self.last_applied_action = None
        return self._state

    def tile_at(self, x: int, y: int) -> str:
        return self.map[y][x]

    def is_terminal_state(self, state: GridState) -> bool:
        return self.tile_at(state.x, state.y) in ("H", "G")

    def _slip(self, action: str) -> str:
        if self.slippery and self.rng.random() < self.slip_probability:
            # pick one of the other 3 actions uniformly
            others = [a for a in self.actions if a != action]
            return others[int(self.rng.integers(low=0, high=len(others)))]
        return action

    def step(self, action: str) -> StepResult:
        """
        Step the lake by one (possibly slipped) action.

        :param action: Requested action.
            :type action: str

        :return: StepResult(next_state, reward, done)
            :rtype: StepResult
        """
        if self._done:
            return self._noop()

        self._check_action(action)
        action = self._slip(action)
        self.last_applied_action = action

        x, y = self._state.x, self._state.y
        if action == "left":
            x = max(0, x - 1)
        elif action == "right":
            x = min(self.size - 1, x + 1)
        elif action == "up":
            y = max(0, y - 1)
        elif action == "down":
            y = min(self.size - 1, y + 1)

        self._state = GridState(x, y)
        tile = self.tile_at(x, y)

        reward = self.step_reward
        if tile == "H":
            reward = self.hole_reward
            self._done = True
        elif tile == "G":
            reward = self.goal_reward
            self._done = True

        return StepResult(next_state=self._state, reward=reward, done=self._done)
