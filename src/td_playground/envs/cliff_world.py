from __future__ import annotations

from td_playground.envs.base import Environment, EnvironmentKind, StepResult
from td_playground.tabular.state_keys import GridState


class CliffWorld(Environment):
    """
    Cliff walking on a rows x cols grid.

    The start is the bottom-left cell, the goal the bottom-right cell, and every bottom-row cell strictly between
    them is cliff. Layout for the default 4x12 grid:

        . . . . . . . . . . . .
        . . . . . . . . . . . .
        . . . . . . . . . . . .
        S C C C C C C C C C C G

    Rewards:
    - normal step: -1
    - stepping onto the cliff: -100, the agent is teleported back to the start and the episode ends
      (the returned next state is the start cell, not the cliff cell)
    - reaching the goal: 0, the episode ends

    :param rows: Number of rows.
        :type rows: int
    :param cols: Number of columns.
        :type cols: int
    """

    kind = EnvironmentKind.CLIFF
    actions = ("up", "down", "left", "right")

    step_reward = -1.0
    cliff_reward = -100.0
    goal_reward = 0.0

    def __init__(self, rows: int = 4, cols: int = 12):
        self.rows = int(rows)
        self.cols = int(cols)
        if self.rows < 1 or self.cols < 3:
            raise ValueError(f"grid must have rows >= 1 and cols >= 3, got {rows}x{cols}")

        self.start = GridState(0, self.rows - 1)
        self.goal = GridState(self.cols - 1, self.rows - 1)

        self._state = self.start
        self._done = False
        self.reset()

    @property
    def state(self) -> GridState:
        return self._state

    @property
    def size(self) -> int:
        return max(self.rows, self.cols)

    def reset(self) -> GridState:
        self._state = self.start
        self._done = False
        return self._state

    def is_cliff(self, x: int, y: int) -> bool:
        return y == self.rows - 1 and self.start.x < x < self.goal.x

    def is_terminal_state(self, state: GridState) -> bool:
        # the agent never rests on a cliff cell, but it is terminal for planning purposes
        return (state.x == self.goal.x and state.y == self.goal.y) or self.is_cliff(state.x, state.y)

    def step(self, action: str) -> StepResult:
        """
        Step the cliff world by one action.

        :param action: Action name.
            :type action: str

        :return: StepResult(next_state, reward, done)
            :rtype: StepResult
        """
        if self._done:
            return self._noop()

        self._check_action(action)

        x, y = self._state.x, self._state.y
        if action == "up":
            y -= 1
        elif action == "down":
            y += 1
        elif action == "left":
            x -= 1
        elif action == "right":
            x += 1

        x = max(0, min(self.cols - 1, x))
        y = max(0, min(self.rows - 1, y))

        if self.is_cliff(x, y):
            self._state = self.start
            self._done = True
            return StepResult(next_state=self._state, reward=self.cliff_reward, done=True)

        self._state = GridState(x, y)

        if self._state == self.goal:
            self._done = True
            return StepResult(next_state=self._state, reward=self.goal_reward, done=True)

        return StepResult(next_state=self._state, reward=self.step_reward, done=False)
