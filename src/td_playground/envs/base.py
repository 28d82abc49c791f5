from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EnvironmentKind(Enum):
    """
    The four simulators. Used to select an environment profile (never compare class names).
    """
    GRID = "gridworld"
    SLIP = "slipworld"
    CLIFF = "cliffworld"
    PHYSICS = "physicsworld"


@dataclass(frozen=True)  # frozen=True -> a transition is a value, never mutated after creation
class StepResult:
    """
    Outcome of one environment step.

    :param next_state: State after the step.
        :type next_state: Any
    :param reward: Reward received.
        :type reward: float
    :param done: Whether the episode ended with this step.
        :type done: bool
    """
    next_state: Any
    reward: float
    done: bool


class Environment:
    """
    Contract every simulator implements.

    Required:
        - reset() -> State
        - step(action) -> StepResult
        - state (property)
    Optional:
        - is_terminal_state(state) -> bool (check 'supports_terminal_check' before calling it)

    Calling a required method the subclass does not implement raises NotImplementedError: the environment is
    misconfigured and unusable. Calling step() after the episode is over is not an error, it returns the current
    state with reward 0.
    """

    kind: EnvironmentKind | None = None
    actions: tuple[str, ...] = ()

    _done: bool = False

    def reset(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__}.reset() not implemented")

    def step(self, action: str) -> StepResult:
        raise NotImplementedError(f"{type(self).__name__}.step() not implemented")

    @property
    def state(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__}.state not implemented")

    @property
    def is_done(self) -> bool:
        return bool(self._done)

    def is_terminal_state(self, state: Any) -> bool:
        raise NotImplementedError(f"{type(self).__name__}.is_terminal_state() not implemented")

    @property
    def supports_terminal_check(self) -> bool:
        return type(self).is_terminal_state is not Environment.is_terminal_state

    def _check_action(self, action: str) -> None:
        if action not in self.actions:
            raise ValueError(f"Invalid action {action!r}. Must be one of {self.actions}.")

    def _noop(self) -> StepResult:
        # stepping a finished episode: stay put, no reward
        return StepResult(next_state=self.state, reward=0.0, done=True)
