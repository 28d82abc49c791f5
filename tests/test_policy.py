import pytest

from td_playground.tabular import (
    AGENTS,
    ExpectedSARSAgent,
    NextActionTiming,
    QLearningAgent,
    SARSAgent,
    make_agent,
)

ACTIONS = ("up", "down", "left", "right")


def test_greedy_ties_go_to_the_first_action() -> None:
    """
    With exploration off, ties are broken by the fixed action order, so the same table always gives the same action.
    """
    agent = QLearningAgent(actions=ACTIONS, epsilon=0.0, seed=0)
    agent.training = False

    agent.Q.get_row("s")
    assert agent.act("s") == "up"

    agent.Q.set("s", "down", 1.0)
    agent.Q.set("s", "right", 1.0)
    assert agent.act("s") == "down"

    agent.Q.set("s", "left", 3.0)
    assert agent.act("s") == "left"


def test_get_greedy_action_never_creates_rows() -> None:
    agent = SARSAgent(actions=ACTIONS, seed=0)

    assert agent.get_greedy_action("unseen") is None
    assert "unseen" not in agent.Q

    agent.Q.set("seen", "right", 0.5)
    assert agent.get_greedy_action("seen") == "right"


def test_unseen_state_row_is_created_by_act() -> None:
    agent = QLearningAgent(actions=ACTIONS, epsilon=0.0, seed=0)

    action = agent.act("fresh")

    assert action in ACTIONS
    assert agent.Q.as_dict()["fresh"] == {a: 0.0 for a in ACTIONS}


def test_q_learning_is_greedy_on_unseen_states_outside_training() -> None:
    """
    Q-learning and Expected SARSA do not explore with training off: a fresh state gives the first action.
    """
    for cls in (QLearningAgent, ExpectedSARSAgent):
        agent = cls(actions=ACTIONS, epsilon=1.0, seed=0)
        agent.training = False

        chosen = {agent.act(f"s{i}") for i in range(50)}
        assert chosen == {"up"}


def test_sarsa_explores_unseen_states_even_outside_training() -> None:
    """
    SARSA picks a random action on a never-seen state regardless of the training flag.
    """
    agent = SARSAgent(actions=ACTIONS, epsilon=0.0, seed=0)
    agent.training = False

    chosen = {agent.act(f"s{i}") for i in range(50)}
    assert len(chosen) > 1

    # once the row exists it is plain greedy
    agent.Q.set("s0", "left", 1.0)
    assert all(agent.act("s0") == "left" for _ in range(20))


def test_epsilon_only_applies_while_training() -> None:
    agent = QLearningAgent(actions=ACTIONS, epsilon=1.0, seed=0)
    agent.Q.set("s", "right", 1.0)

    explored = {agent.act("s") for _ in range(100)}
    assert len(explored) > 1

    agent.training = False
    assert all(agent.act("s") == "right" for _ in range(50))


def test_same_seed_same_choices() -> None:
    a = SARSAgent(actions=ACTIONS, epsilon=0.5, seed=123)
    b = SARSAgent(actions=ACTIONS, epsilon=0.5, seed=123)

    assert [a.act("s") for _ in range(30)] == [b.act("s") for _ in range(30)]


def test_reset_clears_the_table_but_keeps_settings() -> None:
    agent = ExpectedSARSAgent(actions=ACTIONS, alpha=0.3, epsilon=0.2, seed=0)
    agent.Q.set("s", "up", 1.0)
    agent.training = False

    agent.reset()

    assert len(agent.Q) == 0
    assert agent.q_table == {}
    assert agent.alpha == 0.3
    assert agent.epsilon == 0.2
    assert agent.training is False


def test_next_action_timing_per_learner() -> None:
    assert SARSAgent.next_action_timing is NextActionTiming.BEFORE_UPDATE
    assert QLearningAgent.next_action_timing is NextActionTiming.AFTER_UPDATE
    assert ExpectedSARSAgent.next_action_timing is NextActionTiming.AFTER_UPDATE


def test_make_agent_by_name() -> None:
    assert set(AGENTS) == {"qlearning", "sarsa", "expectedsarsa"}

    agent = make_agent("Expected-SARSA", actions=ACTIONS, alpha=0.5, gamma=0.9, epsilon=0.0, seed=1)
    assert isinstance(agent, ExpectedSARSAgent)
    assert agent.alpha == 0.5
    assert agent.gamma == 0.9

    assert isinstance(make_agent("q_learning", actions=ACTIONS), QLearningAgent)

    with pytest.raises(ValueError):
        make_agent("dqn", actions=ACTIONS)


@pytest.mark.parametrize("kwargs", [{"alpha": 0.0}, {"alpha": 1.5}, {"gamma": -0.1}, {"epsilon": 1.1}])
def test_invalid_hyperparameters(kwargs) -> None:
    with pytest.raises(ValueError):
        QLearningAgent(actions=ACTIONS, **kwargs)
