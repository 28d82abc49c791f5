import pytest

from td_playground.envs import CliffWorld, GridWorld, SlipWorld
from td_playground.tabular import QLearningAgent, SARSAgent
from td_playground.training import StepLoop, profile_for


def test_step_updates_the_table_and_reports_the_value() -> None:
    env = GridWorld(size=3)
    agent = QLearningAgent(actions=env.actions, alpha=0.5, gamma=0.9, epsilon=0.0, seed=0)
    loop = StepLoop(env, agent)

    outcome = loop.step()

    assert outcome is not None
    assert outcome.reward == -1.0
    assert not outcome.done
    assert outcome.value == agent.Q.get("0,0", outcome.action)
    assert outcome.value == -0.5
    assert loop.steps == 1
    assert loop.total_reward == -1.0


def test_episode_end_counts_success_and_starts_over() -> None:
    env = GridWorld(size=2)
    agent = SARSAgent(actions=env.actions, epsilon=0.1, seed=0)
    loop = StepLoop(env, agent)

    outcome = None
    for _ in range(10_000):
        outcome = loop.step()
        if outcome.done:
            break

    assert outcome.done
    assert loop.episodes == 1
    # 2x2 grid: success needs a total reward >= 0.9, i.e. fewer than ~100 steps
    assert loop.successes == (1 if loop.total_reward >= 0.9 else 0)

    loop.step()
    assert loop.steps == 1
    assert loop.episodes == 1


def test_cliff_fall_is_not_a_success() -> None:
    env = CliffWorld()
    agent = QLearningAgent(actions=env.actions, epsilon=0.0, seed=0)
    agent.Q.set("0,3", "right", 1.0)
    loop = StepLoop(env, agent)

    outcome = loop.step()

    assert outcome.action == "right"
    assert outcome.reward == -100.0
    assert outcome.done
    assert loop.episodes == 1
    assert loop.successes == 0
    assert loop.success_rate == 0.0


class ExplodingGrid(GridWorld):
    def step(self, action):
        raise RuntimeError("boom")


def test_failing_step_resets_the_episode() -> None:
    env = ExplodingGrid(size=3)
    agent = QLearningAgent(actions=env.actions, seed=0)
    loop = StepLoop(env, agent)

    with pytest.warns(RuntimeWarning, match="Step failed"):
        assert loop.step() is None

    assert loop.steps == 0
    assert loop.total_reward == 0.0
    assert loop.episodes == 0


def test_swap_environment_uses_the_new_profile() -> None:
    agent = QLearningAgent(actions=GridWorld.actions, seed=0)
    loop = StepLoop(GridWorld(size=3), agent)
    loop.step()

    slip = SlipWorld(slippery=False, seed=0)
    loop.swap_environment(slip)

    assert loop.profile is profile_for(slip)
    loop.step()
    assert loop.steps == 1
