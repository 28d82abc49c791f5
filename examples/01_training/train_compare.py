"""
Train SARSA vs Expected SARSA vs Q-learning on one of the four simulators until convergence.

Run from repo root:
    python examples/01_training/train_compare.py --env cliffworld

It saves a plot to:
    assets/plots/<env>_rewards.png

Each learner trains under the environment's own profile (hyperparameters, step cap, success predicate, stop rule),
so the number of episodes differs between learners: training stops as soon as the convergence supervisor is happy
or the hard episode cap is reached. The vertical dashed lines in the plot mark where each policy became stable.

Tip:
    Use --print-policies to print the greedy policy learned by each agent on the grid environments.
    On the cliff world this is the most intuitive way to see the difference between SARSA (safe path) and
    Q-learning (path along the cliff edge).
"""

from __future__ import annotations

import argparse
from pathlib import Path
import numpy as np

from td_playground.common.plotting import save_training_curves
from td_playground.common.seeding import seed_everything, spawn_seeds
from td_playground.envs import CliffWorld, Environment, GridWorld, PhysicsWorld, SlipWorld
from td_playground.tabular import AGENTS, TabularAgent
from td_playground.tabular.state_keys import GridState
from td_playground.training import ConvergenceSupervisor, EpisodeSummary, create_agent, profile_for, run_greedy_episode


ARROWS = {
    "up": "↑",
    "right": "→",
    "down": "↓",
    "left": "←",
}

LABELS = {
    "sarsa": "SARSA",
    "expectedsarsa": "Expected SARSA",
    "qlearning": "Q-learning",
}


def make_env(name: str, seed: int | None = None, slippery: bool = True) -> Environment:
    """
    Build an environment by command line name.

    :param name: "gridworld", "slipworld", "cliffworld" or "physicsworld".
        :type name: str
    :param seed: Seed for stochastic environments.
        :type seed: int | None
    :param slippery: Slip world only: enable slipping.
        :type slippery: bool

    :return: Environment instance.
        :rtype: Environment
    """
    if name == "gridworld":
        return GridWorld(size=10)
    if name == "slipworld":
        return SlipWorld(slippery=slippery, seed=seed)
    if name == "cliffworld":
        return CliffWorld()
    if name == "physicsworld":
        return PhysicsWorld()
    raise ValueError(f"Unknown environment {name!r}")


def format_policy(env: Environment, agent: TabularAgent) -> str:
    """
    Format the greedy policy of a grid environment as rows of arrows.

    It prints:
        - 'S' start, 'G' goal, 'C' cliff, 'H' hole
        - arrows elsewhere, '•' for cells the agent never visited

    :param env: Grid-like environment (gridworld, slip world or cliff world).
        :type env: Environment
    :param agent: Trained agent.
        :type agent: TabularAgent

    :return: Multi-line string of the policy grid.
        :rtype: str
    """
    if isinstance(env, PhysicsWorld):
        return "(no grid policy for the physics world)"

    rows = int(getattr(env, "rows", getattr(env, "size")))
    cols = int(getattr(env, "cols", getattr(env, "size")))

    lines = list()
    for y in range(rows):
        row_syms = list()
        for x in range(cols):
            action = agent.get_greedy_action(GridState(x, y))
            symbol = ARROWS.get(action, "•")

            if isinstance(env, CliffWorld):
                if env.is_cliff(x, y):
                    symbol = "C"
                if GridState(x, y) == env.start:
                    symbol = "S"
            if isinstance(env, SlipWorld) and env.tile_at(x, y) in ("S", "H", "G"):
                symbol = env.tile_at(x, y)
            if isinstance(env, GridWorld) and GridState(x, y) == env.goal:
                symbol = "G"

            row_syms.append(symbol)
        lines.append(" ".join(row_syms))

    return "\n".join(lines)


def parse_args() -> argparse.Namespace:
    """
    Parse CLI arguments.

    :return: Parsed args.
        :rtype: argparse.Namespace
    """
    p = argparse.ArgumentParser(description="Train SARSA vs Expected SARSA vs Q-learning until convergence.")
    p.add_argument("--env", choices=["gridworld", "slipworld", "cliffworld", "physicsworld"], default="cliffworld")
    p.add_argument("--learners", nargs="+", choices=sorted(AGENTS), default=["sarsa", "expectedsarsa", "qlearning"])
    p.add_argument("--max-episodes", type=int, default=None, help="Override the environment's hard episode cap.")
    p.add_argument("--no-slip", action="store_true", help="Slip world only: disable slipping.")
    p.add_argument("--seed", type=int, default=0, help="Master seed.")
    p.add_argument("--log-every", type=int, default=50, help="Print progress every N episodes (0 = never).")
    p.add_argument("--smooth", type=int, default=10, help="Smoothing window for plotting.")
    p.add_argument("--eval-episodes", type=int, default=10, help="Greedy evaluation episodes after training.")
    p.add_argument("--print-policies", action="store_true", help="Print the greedy policy learned by each method.")
    p.add_argument("--out-dir", type=str, default="assets/plots", help="Where to save the plot.")

    return p.parse_args()


def main():
    """
    Main loop:
    - for each learner: fresh env + agent with its own seed
    - train until the convergence supervisor stops
    - evaluate greedily, save the reward curves
    """
    args = parse_args()
    rng = seed_everything(args.seed)
    seeds = spawn_seeds(rng, 2 * len(args.learners))

    rewards: dict[str, list[float]] = dict()
    stable_starts: dict[str, int | None] = dict()
    trained: dict[str, tuple[Environment, TabularAgent]] = dict()

    for i, name in enumerate(args.learners):
        label = LABELS[name]
        env = make_env(args.env, seed=seeds[2 * i], slippery=not args.no_slip)
        agent = create_agent(name, env, seed=seeds[2 * i + 1])
        supervisor = ConvergenceSupervisor(env, agent)

        def log(summary: EpisodeSummary, label: str = label) -> None:
            if summary.failed:
                print(f"[{label}] episode {summary.episode} failed and was discarded")
            elif args.log_every and (summary.episode % args.log_every == 0 or summary.episode == 1):
                print(f"[{label}] episode {summary.episode}: reward={summary.total_reward:.2f} "
                      f"steps={summary.steps} success={summary.success_rate * 100:.1f}% "
                      f"stable={summary.stable_episodes} eps={summary.epsilon:.3f}")

        print(f"\nTraining {label} on {args.env} ({profile_for(env).training_params})")
        session = supervisor.train(max_episodes=args.max_episodes, on_episode=log)

        print(f"=== {label}: TRAINING COMPLETED ===")
        print(f"  Reason:             {session.stop_reason}")
        print(f"  Total episodes:     {session.episode}")
        print(f"  Final success rate: {session.success_rate() * 100:.1f}%")
        print(f"  Final epsilon:      {agent.epsilon}")
        print(f"  Value table size:   {len(agent.Q)} states")

        if args.eval_episodes > 0:
            profile = profile_for(env)
            evals = [
                run_greedy_episode(env, agent, profile.max_steps, profile.reward_adjust).total_reward
                for _ in range(args.eval_episodes)
            ]
            print(f"  Greedy eval reward: {np.mean(evals):.2f} (over {args.eval_episodes} episodes)")

        rewards[label] = session.episode_rewards
        stable_starts[label] = session.stable_start_episode
        trained[label] = (env, agent)

    out_path = save_training_curves(
        rewards=rewards,
        stable_starts=stable_starts,
        title=f"{args.env}: reward per episode",
        out_path=Path(args.out_dir) / f"{args.env}_rewards.png",
        smooth_window=args.smooth,
    )
    print("\nSaved plot:")
    print(f"  {out_path.resolve()}")

    if args.print_policies:
        for label, (env, agent) in trained.items():
            print(f"\nGreedy policy learned by {label}:")
            print(format_policy(env, agent))


if __name__ == "__main__":
    main()
