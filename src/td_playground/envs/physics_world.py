from __future__ import annotations

import math

from td_playground.envs.base import Environment, EnvironmentKind, StepResult
from td_playground.tabular.state_keys import GridState, PhysicsState


class PhysicsWorld(Environment):
    """
    Mountain-car style physics, discretized for tabular agents.

    Continuous dynamics (per step):
        velocity += 0.001 * force - 0.0025 * cos(3 * position)     force in {-1, 0, +1} for left/none/right
        velocity  = clip(velocity, -0.07, 0.07)
        position += velocity
        if position < -1.2: position = -1.2 and velocity = 0        (inelastic left wall)

    The observed state is GridState(position_bin, velocity_bin): each quantity is normalized to [0, 1], clamped to
    [0, 0.999] and floored into 'n_bins' bins.

    Rewards are shaped to make the task learnable with a table:
        -1 per step, +0.5 when moving right, + 2 * position
    Reaching position >= 0.5 ends the episode with +100. Hitting the internal ceiling of 'max_episode_steps' without
    reaching the goal ends it with -50.

    :param n_bins: Number of bins for position and for velocity.
        :type n_bins: int
    :param max_episode_steps: Internal step ceiling.
        :type max_episode_steps: int
    """

    kind = EnvironmentKind.PHYSICS
    actions = ("left", "none", "right")

    min_position = -1.2
    max_position = 0.6
    goal_position = 0.5
    min_velocity = -0.07
    max_velocity = 0.07
    start_position = -0.5

    goal_reward = 100.0
    timeout_reward = -50.0

    def __init__(self, n_bins: int = 10, max_episode_steps: int = 200):
        self.n_bins = int(n_bins)
        self.max_episode_steps = int(max_episode_steps)
        if self.n_bins < 1:
            raise ValueError(f"n_bins must be >= 1, got {n_bins}")

        self.position = self.start_position
        self.velocity = 0.0
        self.steps = 0
        self._done = False
        self.reset()

    def reset(self) -> GridState:
        # fixed start, easier to learn than a random one
        self.position = self.start_position
        self.velocity = 0.0
        self.steps = 0
        self._done = False
        return self.state

    def _bin(self, value: float, low: float, high: float) -> int:
        norm = (value - low) / (high - low)
        return int(math.floor(max(0.0, min(0.999, norm)) * self.n_bins))

    @property
    def state(self) -> GridState:
        return GridState(
            self._bin(self.position, self.min_position, self.max_position),
            self._bin(self.velocity, self.min_velocity, self.max_velocity),
        )

    @property
    def raw_state(self) -> PhysicsState:
        return PhysicsState(position=self.position, velocity=self.velocity)

    def step(self, action: str) -> StepResult:
        """
        Integrate one step of the dynamics.

        :param action: "left", "none" or "right".
            :type action: str

        :return: StepResult(next_state, reward, done) with the discretized next state.
            :rtype: StepResult
        """
        if self._done:
            return self._noop()

        self._check_action(action)
        self.steps += 1

        force = {"left": -1.0, "none": 0.0, "right": 1.0}[action]

        self.velocity += 0.001 * force - 0.0025 * math.cos(3 * self.position)
        self.velocity = max(self.min_velocity, min(self.max_velocity, self.velocity))
        self.position += self.velocity

        if self.position < self.min_position:
            self.position = self.min_position
            self.velocity = 0.0
        self.position = min(self.max_position, self.position)

        reward = -1.0
        if self.velocity > 0:
            reward += 0.5
        reward += self.position * 2

        if self.position >= self.goal_position:
            self._done = True
            reward = self.goal_reward
        elif self.steps >= self.max_episode_steps:
            self._done = True
            reward = self.timeout_reward

        return StepResult(next_state=self.state, reward=reward, done=self._done)
