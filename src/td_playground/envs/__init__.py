"""
Discrete-state simulators implementing the environment contract.

This subpackage contains:
- the contract (Environment, StepResult, EnvironmentKind)
- grid navigation, slip world, cliff world and a discretized physics world
"""

from .base import Environment, EnvironmentKind, StepResult
from .gridworld import GridWorld
from .slip_world import SlipWorld
from .cliff_world import CliffWorld
from .physics_world import PhysicsWorld

__all__ = [
    "Environment",
    "EnvironmentKind",
    "StepResult",
    "GridWorld",
    "SlipWorld",
    "CliffWorld",
    "PhysicsWorld",
]
