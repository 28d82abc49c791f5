from __future__ import annotations

from dataclasses import dataclass
import warnings

from td_playground.envs.base import Environment
from td_playground.tabular.agent import TabularAgent
from td_playground.training.episode import EpisodeResult, td_step
from td_playground.training.profiles import EnvironmentProfile, profile_for


@dataclass(frozen=True)
class StepOutcome:
    """
    Observable result of one interactive step (what a UI shows after clicking "step").

    :param action: Action taken.
        :type action: str
    :param reward: Reward received.
        :type reward: float
    :param value: New estimate of Q(s, a) after the update.
        :type value: float
    :param done: Whether the episode ended.
        :type done: bool
    """
    action: str
    reward: float
    value: float
    done: bool


class StepLoop:
    """
    Advance an agent one transition at a time, learning as it goes.

    Meant for hosts that render between steps. The loop keeps per-episode counters (steps, total reward) and
    run-wide counters (episodes, successes). When an episode ends, the profile's success predicate is evaluated and
    the next call to 'step' starts a fresh episode.

    If a step raises, the in-flight episode is abandoned: a RuntimeWarning is emitted, the environment and the
    episode counters are reset, and 'step' returns None. Value updates already made stay in the table.

    :param env: Environment.
        :type env: Environment
    :param agent: Learner.
        :type agent: TabularAgent
    :param profile: Profile used for the success predicate. Defaults to the environment's profile.
        :type profile: EnvironmentProfile | None
    """

    def __init__(self, env: Environment, agent: TabularAgent, profile: EnvironmentProfile | None = None):
        self.env = env
        self.agent = agent
        self.profile = profile if profile is not None else profile_for(env)

        self.steps = 0
        self.total_reward = 0.0
        self.episodes = 0
        self.successes = 0

        self._state = None
        self._pending_action: str | None = None
        self._needs_reset = True

    @property
    def success_rate(self) -> float:
        return self.successes / self.episodes if self.episodes > 0 else 0.0

    def reset(self) -> None:
        """
        Start a new episode (run-wide counters are kept).
        """
        self._state = self.env.reset()
        self._pending_action = None
        self.steps = 0
        self.total_reward = 0.0
        self._needs_reset = False

    def swap_environment(self, env: Environment, profile: EnvironmentProfile | None = None) -> None:
        self.env = env
        self.profile = profile if profile is not None else profile_for(env)
        self._needs_reset = True

    def step(self) -> StepOutcome | None:
        """
        Act, step the environment, learn.

        :return: StepOutcome, or None if the step failed and the episode was reset.
            :rtype: StepOutcome | None
        """
        if self._needs_reset:
            self.reset()

        try:
            return self._advance()
        except NotImplementedError:
            raise
        except Exception as exc:
            warnings.warn(message=f"Step failed, resetting the episode: {exc!r}", category=RuntimeWarning)
            self.reset()
            return None

    def _advance(self) -> StepOutcome:
        state = self._state
        action = self._pending_action if self._pending_action is not None else self.agent.act(state)

        result = self.env.step(action)
        reward, done = float(result.reward), bool(result.done)

        value, next_action = td_step(self.agent, state, action, reward, result.next_state)

        self.steps += 1
        adjust = self.profile.reward_adjust
        self.total_reward += adjust(reward) if adjust is not None else reward
        self._state = result.next_state
        self._pending_action = next_action

        if done:
            self._end_episode()

        return StepOutcome(action=action, reward=reward, value=value, done=done)

    def _end_episode(self) -> None:
        self.episodes += 1
        outcome = EpisodeResult(total_reward=self.total_reward, steps=self.steps, done=True)
        if self.profile.success(outcome):
            self.successes += 1
        self._needs_reset = True
