"""Helpers shared across CLI commands for building and driving scenarios."""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from goapnpc.actions import build_action
from goapnpc.core.agent import Agent
from goapnpc.core.models import (
    ActionConfig,
    AgentConfig,
    EnemyConfig,
    FactSet,
    GoalConfig,
    ScenarioConfig,
)
from goapnpc.core.planner import Planner
from goapnpc.core.world import WorldState
from goapnpc.io import StructuredLogger, load_config
from goapnpc.world import KinematicMover, RaidController, TargetRegistry, VisibilitySensor

if TYPE_CHECKING:
    from pathlib import Path


def default_scenario() -> ScenarioConfig:
    """Return the village guard scenario used when no config file is provided."""
    guard_goals = [
        GoalConfig(
            name="Survive",
            priority=100,
            desired=FactSet(bools={"HealthLow": False}),
            activation=FactSet(bools={"HealthLow": True}),
        ),
        GoalConfig(
            name="DefendTown",
            priority=80,
            desired=FactSet(bools={"EnemyDead": True}),
            activation=FactSet(bools={"RaidActive": True}),
        ),
        GoalConfig(
            name="SecureArea",
            priority=70,
            desired=FactSet(bools={"AreaSecured": True}),
            activation=FactSet(bools={"RaidActive": True}),
        ),
        GoalConfig(
            name="MaintainEnergy",
            priority=40,
            desired=FactSet(bools={"StaminaRecovered": True}),
        ),
        GoalConfig(
            name="Socialize",
            priority=20,
            desired=FactSet(bools={"Socialized": True}),
            activation=FactSet(bools={"IsEvening": True}),
        ),
    ]
    guard_actions = [
        ActionConfig(type="use_potion"),
        ActionConfig(type="flee", params={"destination": (-6.0, 0.0)}),
        ActionConfig(type="retrieve_weapon", params={"destination": (3.0, 0.0)}),
        ActionConfig(type="attack_enemy"),
        ActionConfig(type="barricade_gate", params={"destination": (8.0, 0.0)}),
        ActionConfig(
            type="patrol",
            params={"waypoints": ((6.0, 2.0), (6.0, -2.0)), "timeout": 30.0},
        ),
        ActionConfig(type="eat_food"),
        ActionConfig(type="socialize", params={"destination": (0.0, 4.0)}),
    ]
    villager_goals = [
        GoalConfig(
            name="Survive",
            priority=100,
            desired=FactSet(bools={"IsSafe": True}),
            activation=FactSet(bools={"RaidActive": True}),
        ),
        GoalConfig(
            name="Socialize",
            priority=20,
            desired=FactSet(bools={"Socialized": True}),
            activation=FactSet(bools={"IsEvening": True}),
        ),
    ]
    villager_actions = [
        ActionConfig(type="flee", params={"destination": (-6.0, 1.0)}),
        ActionConfig(type="socialize", params={"destination": (0.0, 4.0)}),
    ]
    return ScenarioConfig(
        global_facts=FactSet(bools={"RaidActive": False, "IsEvening": True}),
        agents=[
            AgentConfig(
                name="Guard",
                position=(0.0, 0.0),
                local_facts=FactSet(
                    bools={
                        "HasWeapon": False,
                        "HealthLow": False,
                        "EnemyVisible": False,
                        "StaminaRecovered": False,
                    },
                ),
                goals=guard_goals,
                actions=guard_actions,
            ),
            AgentConfig(
                name="Villager",
                position=(1.0, 1.0),
                local_facts=FactSet(bools={"HealthLow": True}),
                goals=villager_goals,
                actions=villager_actions,
            ),
        ],
        enemies=[EnemyConfig(position=(9.0, 0.0), health=30.0)],
    )


def load_cli_config(config_path: Path | None) -> ScenarioConfig:
    """Load a scenario from ``config_path`` or fall back to the default one."""
    if config_path is None:
        return default_scenario()
    return load_config(path=config_path)


def build_logger(*, json_logs: bool, silence_logs: bool, level: str = "INFO") -> StructuredLogger:
    """Return the logger used by CLI commands."""
    stream = io.StringIO() if silence_logs else sys.stderr
    return StructuredLogger(name="goapnpc.cli", json_mode=json_logs, stream=stream, level=level)


@dataclass(slots=True)
class Simulation:
    """A scenario wired to reference collaborators and stepped frame by frame."""

    config: ScenarioConfig
    global_state: WorldState
    agents: list[Agent]
    movers: dict[str, KinematicMover]
    registry: TargetRegistry
    visibility: VisibilitySensor
    raid: RaidController
    logger: StructuredLogger
    frame: int = 0
    timeline: list[dict[str, Any]] = field(default_factory=list)

    def agent(self, name: str) -> Agent:
        """Return the agent called ``name``."""
        for agent in self.agents:
            if agent.name == name:
                return agent
        msg = f"unknown agent: {name}"
        raise KeyError(msg)

    def start_raid(self) -> int:
        """Spawn the configured enemies and raise the raid flag."""
        return self.raid.start((enemy.position, enemy.health) for enemy in self.config.enemies)

    def step(self, delta: float) -> None:
        """Advance the world and every agent by ``delta`` seconds."""
        self.frame += 1
        self.raid.update()
        for mover in self.movers.values():
            mover.step(delta)
        for agent in self.agents:
            self.visibility.update(agent)
            before = (agent.status, agent.current_action)
            agent.tick(delta)
            if (agent.status, agent.current_action) != before:
                snapshot = agent.describe()
                self.timeline.append(
                    {
                        "frame": self.frame,
                        "agent": snapshot.name,
                        "status": snapshot.status.value,
                        "goal": snapshot.goal,
                        "action": snapshot.current_action,
                        "plan": snapshot.plan,
                    },
                )


def build_agent(
    config: AgentConfig,
    *,
    global_state: WorldState,
    planner: Planner,
    mover: KinematicMover,
    registry: TargetRegistry,
    logger: StructuredLogger,
) -> Agent:
    """Create an :class:`Agent` from its configuration."""
    return Agent(
        config.name,
        actions=[build_action(action) for action in config.actions],
        goals=[goal.to_goal() for goal in config.goals],
        global_state=global_state,
        local_state=config.local_facts.to_state(),
        planner=planner,
        mover=mover,
        sensor=registry,
        logger=logger,
        replan_interval=config.replan_interval,
    )


def build_simulation(config: ScenarioConfig, logger: StructuredLogger) -> Simulation:
    """Assemble agents and collaborators for ``config``."""
    global_state = config.global_facts.to_state()
    registry = TargetRegistry()
    planner = Planner(config.planner, logger=logger)
    movers: dict[str, KinematicMover] = {}
    agents: list[Agent] = []
    for agent_config in config.agents:
        mover = KinematicMover(agent_config.position, speed=agent_config.speed)
        movers[agent_config.name] = mover
        agents.append(
            build_agent(
                agent_config,
                global_state=global_state,
                planner=planner,
                mover=mover,
                registry=registry,
                logger=logger,
            ),
        )
    return Simulation(
        config=config,
        global_state=global_state,
        agents=agents,
        movers=movers,
        registry=registry,
        visibility=VisibilitySensor(registry, radius=config.visibility_radius),
        raid=RaidController(global_state, registry, logger=logger),
        logger=logger,
    )


__all__ = [
    "Simulation",
    "build_agent",
    "build_logger",
    "build_simulation",
    "default_scenario",
    "load_cli_config",
]
