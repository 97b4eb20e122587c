"""CLI entry point for goapnpc built with Typer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import click
import typer

from goapnpc.cli.runtime import Simulation, build_logger, build_simulation, load_cli_config
from goapnpc.core.explain import explain_plan

if TYPE_CHECKING:
    from collections.abc import Sequence
    from goapnpc.core.agent import Agent
    from goapnpc.core.models import Plan


app = typer.Typer(add_completion=False, no_args_is_help=True)


@dataclass(frozen=True, slots=True)
class AgentPlan:
    """Container describing a freshly computed plan for one agent."""

    agent: Agent
    plan: Plan | None


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


def _parse_fact(raw: str) -> tuple[str, bool | int]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        msg = f"facts must look like NAME=VALUE, got {raw!r}"
        raise typer.BadParameter(msg)
    lowered = value.strip().lower()
    if lowered in {"true", "false"}:
        return key.strip(), lowered == "true"
    try:
        return key.strip(), int(value)
    except ValueError as exc:
        msg = f"fact value must be true, false or an integer, got {value!r}"
        raise typer.BadParameter(msg) from exc


def _prepare_simulation(
    config_path: Path | None,
    facts: list[str] | None,
    *,
    json_logs: bool,
    silence_logs: bool,
    log_level: str = "INFO",
) -> Simulation:
    try:
        config = load_cli_config(config_path)
    except FileNotFoundError as exc:
        typer.echo(f"Configuration file not found: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    logger = build_logger(json_logs=json_logs, silence_logs=silence_logs, level=log_level)
    simulation = build_simulation(config, logger)
    for raw in facts or []:
        key, value = _parse_fact(raw)
        if isinstance(value, bool):
            simulation.global_state.set_bool(key, value)
        else:
            simulation.global_state.set_int(key, value)
    return simulation


def _select_agents(simulation: Simulation, name: str | None) -> list[Agent]:
    if name is None:
        return list(simulation.agents)
    try:
        return [simulation.agent(name)]
    except KeyError as exc:
        typer.echo(f"Unknown agent: {name}", err=True)
        raise typer.Exit(code=2) from exc


def _plan_payload(entry: AgentPlan) -> dict[str, Any]:
    plan = entry.plan
    return {
        "agent": entry.agent.name,
        "goal": plan.goal.name if plan is not None else None,
        "actions": plan.names if plan is not None else [],
        "cost": plan.cost if plan is not None else None,
        "expansions": plan.expansions if plan is not None else 0,
        "exhausted": plan.exhausted if plan is not None else False,
        "state": entry.agent.combined_state().as_dict(),
    }


@app.callback()
def cli_root() -> None:
    """Top-level CLI group for goapnpc."""


ConfigOption = Annotated[Path | None, typer.Option(help="Path to a scenario TOML.")]
AgentOption = Annotated[str | None, typer.Option(help="Only report this agent.")]
FactOption = Annotated[
    list[str] | None,
    typer.Option("--fact", help="Override a global fact, e.g. RaidActive=true."),
]
JsonFlag = Annotated[
    bool,
    typer.Option("--json", "--json-output", help="Emit JSON instead of text."),
]


@app.command("plan")
def plan_command(
    config: ConfigOption = None,
    agent: AgentOption = None,
    fact: FactOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Display the plan each agent would adopt for the current world state."""
    simulation = _prepare_simulation(config, fact, json_logs=json_output, silence_logs=True)
    entries = [AgentPlan(agent=item, plan=item.preview_plan()) for item in _select_agents(simulation, agent)]

    if json_output:
        _emit_json({"plans": [_plan_payload(entry) for entry in entries]})
        return

    lines: list[str] = []
    for entry in entries:
        plan = entry.plan
        lines.append(f"Agent: {entry.agent.name}")
        if plan is None:
            lines.append("  No plan: no active goal is reachable.")
            continue
        lines.append(f"  Goal: {plan.goal.name} (priority={plan.goal.priority:g})")
        lines.append(f"  Estimated cost: {plan.cost:.2f}")
        lines.append("  Actions:")
        lines.extend(
            f"    {index}. {action.name} (cost={action.cost:.2f})"
            for index, action in enumerate(plan.actions, start=1)
        )
    typer.echo("\n".join(lines))


@app.command("explain")
def explain_command(
    config: ConfigOption = None,
    agent: AgentOption = None,
    fact: FactOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Explain each step of the plan each agent would adopt."""
    simulation = _prepare_simulation(config, fact, json_logs=json_output, silence_logs=True)
    entries = [AgentPlan(agent=item, plan=item.preview_plan()) for item in _select_agents(simulation, agent)]

    if json_output:
        payload: list[dict[str, Any]] = []
        for entry in entries:
            steps = (
                explain_plan(entry.plan, entry.agent.combined_state()) if entry.plan is not None else []
            )
            payload.append(
                {
                    "agent": entry.agent.name,
                    "goal": entry.plan.goal.name if entry.plan is not None else None,
                    "notes": list(entry.plan.notes) if entry.plan is not None else [],
                    "steps": [
                        {
                            "index": step.index,
                            "action": step.action,
                            "cost": step.cost,
                            "running_cost": step.running_cost,
                            "requires": step.requires,
                            "provides": step.provides,
                            "unlocks": list(step.unlocks),
                        }
                        for step in steps
                    ],
                },
            )
        _emit_json({"explanations": payload})
        return

    lines: list[str] = []
    for entry in entries:
        lines.append(f"Agent: {entry.agent.name}")
        if entry.plan is None:
            lines.append("  No plan: no active goal is reachable.")
            continue
        lines.append(f"  Goal: {entry.plan.goal.name}")
        for step in explain_plan(entry.plan, entry.agent.combined_state()):
            lines.append(f"  {step.index}. {step.action} (cost={step.cost:.2f}, total={step.running_cost:.2f})")
            lines.append(f"     requires: {json.dumps(step.requires, ensure_ascii=False)}")
            lines.append(f"     provides: {json.dumps(step.provides, ensure_ascii=False)}")
            if step.unlocks:
                lines.append(f"     unlocks: {', '.join(step.unlocks)}")
        if entry.plan.notes:
            lines.append("  Notes:")
            lines.extend(f"    - {note}" for note in entry.plan.notes)
    typer.echo("\n".join(lines))


@app.command("simulate")
def simulate_command(
    config: ConfigOption = None,
    fact: FactOption = None,
    ticks: Annotated[int, typer.Option(min=1, help="Number of frames to run.")] = 120,
    delta: Annotated[float, typer.Option(min=0.001, help="Seconds per frame.")] = 0.1,
    raid_at: Annotated[int | None, typer.Option(help="Frame at which a raid starts.")] = None,
    json_output: JsonFlag = False,
    verbose: Annotated[bool, typer.Option(help="Stream agent logs to stderr.")] = False,
) -> None:
    """Run the scenario for a number of frames and report what the agents did."""
    simulation = _prepare_simulation(
        config,
        fact,
        json_logs=json_output,
        silence_logs=not verbose,
        log_level="DEBUG" if verbose else "INFO",
    )
    for frame in range(1, ticks + 1):
        if raid_at is not None and frame == raid_at:
            simulation.start_raid()
        simulation.step(delta)

    final = [agent.describe().model_dump(mode="json") for agent in simulation.agents]
    if json_output:
        _emit_json(
            {
                "frames": simulation.frame,
                "delta": delta,
                "raid_active": simulation.raid.is_active,
                "timeline": simulation.timeline,
                "agents": final,
            },
        )
        return

    lines = [f"Frames: {simulation.frame} (delta={delta:g}s)", "Timeline:"]
    for event in simulation.timeline:
        action = event["action"] or "-"
        goal = event["goal"] or "-"
        lines.append(f"  [{event['frame']:>4}] {event['agent']}: {event['status']} goal={goal} action={action}")
    lines.append("Final state:")
    lines.extend(
        f"  {entry['name']}: {entry['status']} goal={entry['goal'] or '-'} plan={' -> '.join(entry['plan']) or '-'}"
        for entry in final
    )
    typer.echo("\n".join(lines))


def main(argv: Sequence[str] | None = None) -> int:
    """Execute the goapnpc CLI and return the exit status."""
    command = typer.main.get_command(app)
    args = list(argv) if argv is not None else None
    try:
        result = command.main(args=args, prog_name="goapnpc", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except SystemExit as exc:  # pragma: no cover - Typer propagates exit codes via SystemExit
        return int(exc.code or 0)
    # Without standalone mode, typer.Exit codes come back as the return value.
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
