from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator
import warnings

from td_playground.envs.base import Environment
from td_playground.tabular.agent import TabularAgent
from td_playground.training.episode import EpisodeResult, run_episode
from td_playground.training.profiles import EnvironmentProfile, StateTracking, profile_for, tracked_states
from td_playground.training.session import TrainingSession, take_snapshot

# ε annealing: every ANNEAL_EVERY episodes, ε <- ε * ANNEAL_FACTOR while ε > ANNEAL_FLOOR
ANNEAL_EVERY = 100
ANNEAL_FACTOR = 0.95
ANNEAL_FLOOR = 0.05

CANCELLED = "cancelled"


@dataclass(frozen=True)
class EpisodeSummary:
    """
    Post-episode statistics yielded by 'ConvergenceSupervisor.iter_train'.

    :param episode: 1-based episode index within the run.
        :type episode: int
    :param total_reward: Episode total (None for a failed, discarded episode).
        :type total_reward: float | None
    :param steps: Steps taken (None for a failed episode).
        :type steps: int | None
    :param success: Profile success predicate.
        :type success: bool
    :param epsilon: ε after this episode (after annealing or final setting).
        :type epsilon: float
    :param stable_episodes: Policy-stability counter.
        :type stable_episodes: int
    :param stable_start_episode: Episode at which the current stable streak started.
        :type stable_start_episode: int | None
    :param success_rate: Success rate over the rolling window, in [0, 1].
        :type success_rate: float
    :param stopped: True on the last summary of the run.
        :type stopped: bool
    :param stop_reason: Why training stopped (only when stopped).
        :type stop_reason: str | None
    :param failed: True if the episode raised and its statistics were discarded.
        :type failed: bool
    """
    episode: int
    total_reward: float | None
    steps: int | None
    success: bool
    epsilon: float
    stable_episodes: int
    stable_start_episode: int | None
    success_rate: float
    stopped: bool = False
    stop_reason: str | None = None
    failed: bool = False


@dataclass(frozen=True)
class TrainingStatus:
    """
    Snapshot of a run for a status line.
    """
    active: bool
    episode: int
    stable_episodes: int
    stable_start_episode: int | None
    success_rate: float
    average_steps: float
    average_reward: float
    stop_reason: str | None

    def __str__(self) -> str:
        if not self.active:
            if self.stop_reason == CANCELLED:
                return f"Training: Stopped ({CANCELLED}) | Episodes: {self.episode}"
            reason = f" ({self.stop_reason})" if self.stop_reason else ""
            return f"Training: Converged{reason} | Episodes: {self.episode}"
        return (f"Training: Active | Episode: {self.episode} | Stable Episodes: {self.stable_episodes} | "
                f"Success: {self.success_rate * 100:.1f}% | Avg Steps: {self.average_steps:.1f} | "
                f"Avg Reward: {self.average_reward:.1f}")


class ConvergenceSupervisor:
    """
    Runs training episodes until the environment's stop rule (or hard cap) says the agent is done.

    Per episode:
        1. run one episode with online TD updates
        2. record reward/steps/success in the session's rolling windows
        3. check policy stability (snapshot vs previous snapshot) when the profile asks for it
        4. evaluate the stop rule, then the hard episode cap
        5. stop -> training flag off, final ε; continue -> anneal ε every 100 episodes

    Training is a generator ('iter_train'): it yields after every episode, so a host can interleave rendering or
    UI work between episodes. Nothing suspends mid-episode. 'cancel()' (or switching 'agent.training' off) is
    honored before the next episode starts.

    The session (rolling windows, stability counters) lives here, not on the agent.

    :param env: Environment to train on.
        :type env: Environment
    :param agent: Learner whose table gets updated.
        :type agent: TabularAgent
    :param profile: Training policy. Defaults to the environment's profile.
        :type profile: EnvironmentProfile | None
    :param apply_training_params: Overwrite the agent's α/γ/ε with the profile's training values when a run starts.
        :type apply_training_params: bool
    """

    def __init__(
        self,
        env: Environment,
        agent: TabularAgent,
        profile: EnvironmentProfile | None = None,
        apply_training_params: bool = True,
    ):
        self.env = env
        self.agent = agent
        self.profile = profile if profile is not None else profile_for(env)
        self.apply_training_params = bool(apply_training_params)

        self.session = TrainingSession(window=self.profile.window)
        self._cancelled = False

    def cancel(self) -> None:
        """
        Ask the running training loop to stop before its next episode.
        """
        self._cancelled = True

    def check_stability(self) -> bool:
        """
        Snapshot the greedy policy over the tracked states and update the stability counter.

        :return: True if the policy changed since the previous snapshot.
            :rtype: bool
        """
        states = tracked_states(self.profile, self.env, self.agent)
        snapshot = take_snapshot(self.agent, states)
        missing_counts = self.profile.tracking is StateTracking.VALUE_TABLE
        return self.session.update_stability(snapshot, missing_counts_as_change=missing_counts)

    def _anneal(self) -> None:
        if self.session.episode % ANNEAL_EVERY == 0 and self.agent.epsilon > ANNEAL_FLOOR:
            self.agent.epsilon *= ANNEAL_FACTOR

    def _finish(self, reason: str) -> None:
        self.agent.training = False
        self.agent.epsilon = self.profile.final_epsilon
        self.session.stop_reason = reason

    def _summary(self, result: EpisodeResult | None, success: bool, reason: str | None) -> EpisodeSummary:
        return EpisodeSummary(
            episode=self.session.episode,
            total_reward=None if result is None else result.total_reward,
            steps=None if result is None else result.steps,
            success=success,
            epsilon=self.agent.epsilon,
            stable_episodes=self.session.stable_episodes,
            stable_start_episode=self.session.stable_start_episode,
            success_rate=self.session.success_rate(),
            stopped=reason is not None,
            stop_reason=reason,
            failed=result is None,
        )

    def iter_train(self, max_episodes: int | None = None) -> Iterator[EpisodeSummary]:
        """
        Train episode by episode, yielding an EpisodeSummary after each one.

        :param max_episodes: Override of the profile's hard episode cap.
            :type max_episodes: int | None

        :return: Iterator of per-episode summaries; the last one has stopped=True (unless cancelled).
            :rtype: Iterator[EpisodeSummary]
        """
        profile = self.profile
        cap = profile.max_episodes if max_episodes is None else int(max_episodes)
        if cap < 1:
            raise ValueError(f"max_episodes must be >= 1, got {max_episodes}")

        if self.apply_training_params:
            profile.training_params.apply_to(self.agent)
        self.agent.training = True
        self.session = TrainingSession(window=profile.window)
        self._cancelled = False

        while True:
            if self._cancelled or not self.agent.training:
                self.agent.training = False
                self.session.stop_reason = CANCELLED
                return

            self.session.episode += 1
            try:
                result = run_episode(self.env, self.agent, profile.max_steps, profile.reward_adjust)
            except NotImplementedError:
                # misconfigured environment, nothing to recover
                raise
            except Exception as exc:
                # crash-only recovery: drop the episode's statistics, keep the updates already applied
                warnings.warn(
                    message=f"Episode {self.session.episode} failed and was discarded: {exc!r}",
                    category=RuntimeWarning,
                )
                self.session.failed_episodes += 1
                self.env.reset()
                result = None

            success = False
            if result is not None:
                success = bool(profile.success(result))
                self.session.record(result.total_reward, result.steps, success)

                if profile.tracking is not StateTracking.NONE and self.session.episode >= profile.stability_from:
                    self.check_stability()

            reason = profile.stop_rule(self.session) if result is not None else None
            if self.session.episode >= cap:
                reason = f"Reached max episodes ({cap})"

            if reason is not None:
                self._finish(reason)
                yield self._summary(result, success, reason)
                return

            self._anneal()
            yield self._summary(result, success, None)

    def train(
        self,
        max_episodes: int | None = None,
        on_episode: Callable[[EpisodeSummary], None] | None = None,
    ) -> TrainingSession:
        """
        Run 'iter_train' to completion.

        :param max_episodes: Override of the profile's hard episode cap.
            :type max_episodes: int | None
        :param on_episode: Called with every EpisodeSummary (progress printing, charts, ...).
            :type on_episode: Callable[[EpisodeSummary], None] | None

        :return: The finished session.
            :rtype: TrainingSession
        """
        for summary in self.iter_train(max_episodes=max_episodes):
            if on_episode is not None:
                on_episode(summary)
        return self.session

    def status(self) -> TrainingStatus:
        return TrainingStatus(
            active=self.agent.training and self.session.stop_reason is None,
            episode=self.session.episode,
            stable_episodes=self.session.stable_episodes,
            stable_start_episode=self.session.stable_start_episode,
            success_rate=self.session.success_rate(),
            average_steps=self.session.average_steps(),
            average_reward=self.session.average_reward(),
            stop_reason=self.session.stop_reason,
        )
