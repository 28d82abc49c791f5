"""
Training machinery for the tabular agents.

This subpackage contains:
- the episode driver (one episode, online TD updates)
- per-environment training profiles (hyperparameters, caps, success and stop rules)
- the training session and the convergence supervisor
- a step-by-step loop for interactive hosts
"""

from .episode import EpisodeResult, run_episode, run_greedy_episode, td_step
from .session import TrainingSession, compare_snapshots, take_snapshot
from .profiles import (
    PROFILES,
    EnvironmentProfile,
    Hyperparameters,
    StateTracking,
    create_agent,
    profile_for,
    tracked_states,
)
from .supervisor import ConvergenceSupervisor, EpisodeSummary, TrainingStatus
from .step_loop import StepLoop, StepOutcome

__all__ = [
    "EpisodeResult",
    "run_episode",
    "run_greedy_episode",
    "td_step",
    "TrainingSession",
    "compare_snapshots",
    "take_snapshot",
    "PROFILES",
    "EnvironmentProfile",
    "Hyperparameters",
    "StateTracking",
    "create_agent",
    "profile_for",
    "tracked_states",
    "ConvergenceSupervisor",
    "EpisodeSummary",
    "TrainingStatus",
    "StepLoop",
    "StepOutcome",
]
