from __future__ import annotations

from td_playground.envs.base import Environment, EnvironmentKind, StepResult
from td_playground.tabular.state_keys import GridState


class GridWorld(Environment):
    """
    A small deterministic grid navigation task.

    The agent starts in the top-left corner (0, 0) and has to reach the goal in the bottom-right corner
    (size-1, size-1). States are GridState(x, y) with y growing downward, so "up" decrements y.

    Actions:
    - "up", "down", "left", "right"

    Default behaviour:
    - stepping into walls keeps you in the same cell
    - every step gives -1
    - reaching the goal gives +100 and ends the episode

    :param size: Side length of the square grid.
        :type size: int
    """

    kind = EnvironmentKind.GRID
    actions = ("up", "down", "left", "right")

    step_reward = -1.0
    goal_reward = 100.0

    def __init__(self, size: int = 10):
        self.size = int(size)
        if self.size < 2:
            raise ValueError(f"size must be >= 2, got {size}")

        self.start = GridState(0, 0)
        self.goal = GridState(self.size - 1, self.size - 1)

        self._state = self.start
        self._done = False
        self.reset()

    @property
    def state(self) -> GridState:
        return self._state

    def reset(self) -> GridState:
        """
        Put the agent back on the start cell.

        :return: Start state.
            :rtype: GridState
        """
        self._state = self.start
        self._done = False
        return self._state

    def is_terminal_state(self, state: GridState) -> bool:
        return state.x == self.goal.x and state.y == self.goal.y

    def move(self, state: GridState, action: str) -> GridState:
        """
        Deterministic move with clipping to the grid bounds.

        :param state: Current cell.
            :type state: GridState
        :param action: One of the four actions.
            :type action: str

        :return: Next cell.
            :rtype: GridState
        """
        x, y = state.x, state.y

        if action == "up":
            y -= 1
        elif action == "down":
            y += 1
        elif action == "left":
            x -= 1
        elif action == "right":
            x += 1
        else:
            raise ValueError(f"Invalid action {action!r}. Must be one of {self.actions}.")

        x = max(0, min(self.size - 1, x))
        y = max(0, min(self.size - 1, y))
        return GridState(x, y)

    def step(self, action: str) -> StepResult:
        """
        Step the simulator by one action.

        :param action: Action name.
            :type action: str

        :return: StepResult(next_state, reward, done)
            :rtype: StepResult
        """
        if self._done:
            return self._noop()

        self._check_action(action)
        self._state = self.move(self._state, action)
        self._done = self.is_terminal_state(self._state)

        reward = self.goal_reward if self._done else self.step_reward
        return StepResult(next_state=self._state, reward=reward, done=self._done)
