"""
Typer CLI for the pathfinder engine.

Commands:
    pathfinder plan STUDENT             - Compute today's task plan
    pathfinder evidence STUDENT SKILL RESULT --latency MS
                                        - Record one learner result
    pathfinder states STUDENT           - Show a student's skill states
    pathfinder skills                   - List the skill catalog
    pathfinder summary STUDENT          - Mastery rollup per domain
    pathfinder report STUDENT           - Weekly progress digest

The in-memory backend forgets everything when the process exits; set
PATHFINDER_STATE_BACKEND=sql to keep state between invocations.

Usage:
    pathfinder plan student-1 --max 3 --no-speed-drills
    pathfinder evidence student-1 <skill-id> correct --latency 2500
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from pathfinder.engine.learning_engine import LearningEngine
from pathfinder.engine.schemas import EvidenceBatch, EvidenceEventIn, PlanRequest
from pathfinder.logging_setup import configure_logging

T = TypeVar("T")

app = typer.Typer(
    help="pathfinder CLI: adaptive task plans and skill memory for early learners",
    no_args_is_help=True,
)
console = Console()


def _run(work: Callable[[LearningEngine], Awaitable[T]]) -> T:
    """Run one engine operation against the configured backend."""

    async def runner() -> T:
        engine = LearningEngine.from_settings(get_settings())
        await engine.start()
        try:
            return await work(engine)
        finally:
            await engine.close()

    return asyncio.run(runner())


@app.command("plan")
def plan(
    student_id: str = typer.Argument(..., help="Learner identifier"),
    max_tasks: int | None = typer.Option(None, "--max", "-n", help="Maximum number of tasks (1-10)"),
    speed_drills: bool = typer.Option(
        True, "--speed-drills/--no-speed-drills", help="Allow a speed drill for a slow mastered skill"
    ),
    diagnostic: bool = typer.Option(False, "--diagnostic", help="Add a diagnostic slot"),
) -> None:
    """
    Compute and display today's plan for a student.

    Examples:
        pathfinder plan student-1
        pathfinder plan student-1 --max 3 --diagnostic
    """
    settings = get_settings()
    try:
        request = PlanRequest(
            student_id=student_id,
            max=max_tasks if max_tasks is not None else settings.default_plan_max,
            include_speed_drills=speed_drills,
            include_diagnostic=diagnostic,
        )
    except ValidationError as e:
        rprint(f"[red]✗[/red] Invalid plan request: {e.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    result = _run(
        lambda engine: engine.compute_plan(
            request.student_id,
            max=request.max,
            include_speed_drills=request.include_speed_drills,
            include_diagnostic=request.include_diagnostic,
        )
    )

    table = Table(title=f"Plan for {student_id}", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Skill", style="white", max_width=36)
    table.add_column("Reason", style="yellow")
    table.add_column("Priority", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("XP", justify="right", style="green")

    for index, task in enumerate(result.tasks, start=1):
        table.add_row(
            str(index),
            task.type.value,
            task.metadata.get("skill_title", task.primary_skill_id),
            task.reason.value,
            str(task.priority),
            str(task.estimated_minutes),
            f"{task.xp_value}+{task.xp_bonus}" if task.xp_bonus else str(task.xp_value),
        )

    console.print(table)

    stats = result.stats
    ratio = f"{stats.compression_ratio:.2f}" if stats.compression_ratio is not None else "-"
    rprint(
        f"  Due: {stats.due_skills}  Overdue: {stats.overdue_skills}  "
        f"Struggling: {stats.struggling_skills}  Speed opportunities: {stats.speed_drill_opportunities}"
    )
    rprint(f"  Compression: {ratio}  Planned minutes: {stats.planned_minutes}")
    rprint(
        f"  XP: [green]{result.motivation.projected_xp}[/green] / {result.motivation.xp_target}"
        f"  Time back: {result.motivation.time_back_minutes} min"
    )


@app.command("evidence")
def evidence(
    student_id: str = typer.Argument(..., help="Learner identifier"),
    skill_id: str = typer.Argument(..., help="Skill practiced"),
    result: str = typer.Argument(..., help="correct, partial, incorrect or skipped"),
    latency: int = typer.Option(..., "--latency", "-l", help="Response time in milliseconds"),
    hints: int = typer.Option(0, "--hints", help="Hints used before answering"),
    template_id: str | None = typer.Option(None, "--template", help="Task template id"),
) -> None:
    """
    Record one learner result and show the updated skill states.

    Examples:
        pathfinder evidence student-1 <skill-id> correct --latency 2400
        pathfinder evidence student-1 <skill-id> partial --latency 6000 --hints 1
    """
    try:
        batch = EvidenceBatch(
            student_id=student_id,
            events=[
                EvidenceEventIn(
                    skill_id=skill_id,
                    result=result,
                    latency_ms=latency,
                    hints_used=hints,
                    task_template_id=template_id,
                )
            ],
        )
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"][-1:])
        rprint(f"[red]✗[/red] Invalid evidence ({field}): {error['msg']}")
        raise typer.Exit(code=1)

    async def work(engine: LearningEngine):
        skills = await engine.catalog.get_all_skills()
        if not any(skill.id == skill_id for skill in skills):
            return None
        return await engine.apply_evidence(batch.student_id, batch.to_events())

    outcome = _run(work)
    if outcome is None:
        rprint(f"[red]✗[/red] Unknown skill: {skill_id}")
        raise typer.Exit(code=1)

    table = Table(title="Updated Skills", show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Strength", justify="right")
    table.add_column("Stability", justify="right")
    table.add_column("Due", style="dim")
    table.add_column("Struggling", justify="center")

    for state in outcome.updated_states:
        table.add_row(
            state.skill_id,
            f"{state.strength:.3f}",
            f"{state.stability:.3f}",
            state.due_at.strftime("%Y-%m-%d %H:%M"),
            "[red]yes[/red]" if state.struggling_flag else "-",
        )

    console.print(table)
    rprint(f"\n[bold green]✓[/bold green] +{outcome.xp_earned} XP")
    for achievement in outcome.achievements:
        rprint(f"  [yellow]★[/yellow] {achievement.title}: {achievement.description}")

    logger.info(f"Recorded {result} on {skill_id} for {student_id}")


@app.command("states")
def states(
    student_id: str = typer.Argument(..., help="Learner identifier"),
) -> None:
    """Show every stored skill state for a student."""
    skill_states = _run(lambda engine: engine.load_states(student_id))

    if not skill_states:
        rprint("[dim]No skill states yet.[/dim]")
        return

    table = Table(title=f"Skill States for {student_id}", show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Strength", justify="right")
    table.add_column("Stability", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Avg ms", justify="right")
    table.add_column("Due", style="dim")
    table.add_column("Struggling", justify="center")

    for state in sorted(skill_states, key=lambda s: s.due_at):
        table.add_row(
            state.skill_id,
            f"{state.strength:.3f}",
            f"{state.stability:.3f}",
            str(state.rep_num),
            str(state.avg_latency_ms) if state.avg_latency_ms is not None else "-",
            state.due_at.strftime("%Y-%m-%d %H:%M"),
            "[red]yes[/red]" if state.struggling_flag else "-",
        )

    console.print(table)


@app.command("skills")
def skills() -> None:
    """List the skill catalog in catalog order."""
    catalog = _run(lambda engine: engine.catalog.get_all_skills())

    table = Table(title="Skill Catalog", show_header=True)
    table.add_column("Id", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Domain")
    table.add_column("Grade", justify="center")
    table.add_column("Strand", style="dim")
    table.add_column("Prereqs", justify="right")

    for skill in catalog:
        table.add_row(
            skill.id,
            skill.title,
            skill.domain.value,
            skill.grade_band,
            skill.strand,
            str(len(skill.prerequisites)),
        )

    console.print(table)


@app.command("summary")
def summary(
    student_id: str = typer.Argument(..., help="Learner identifier"),
) -> None:
    """Show mastery per domain with due and slow skills."""
    report = _run(lambda engine: engine.summarize(student_id))

    table = Table(title=f"Mastery for {student_id}", show_header=True)
    table.add_column("Domain", style="cyan")
    table.add_column("Avg strength", justify="right")
    table.add_column("Skills", justify="right")
    table.add_column("Mastered", justify="right", style="green")
    table.add_column("Due", justify="right", style="yellow")
    table.add_column("Struggling", justify="right", style="red")

    for domain in report.domains:
        table.add_row(
            domain.domain.value,
            f"{domain.average_strength:.2f}",
            str(domain.skill_count),
            str(domain.mastered_count),
            str(domain.due_count),
            str(domain.struggling_count),
        )

    console.print(table)
    rprint(f"  Due skills: {len(report.due_skills)}  Speed flags: {len(report.speed_flags)}")


@app.command("report")
def report(
    student_id: str = typer.Argument(..., help="Learner identifier"),
) -> None:
    """
    Show this week's XP by day with highlights and coach actions.

    Examples:
        pathfinder report student-1
    """
    weekly = _run(lambda engine: engine.weekly_report(student_id))

    table = Table(title=f"Week of {weekly.week_of} for {student_id}", show_header=True)
    table.add_column("Date", style="dim")
    table.add_column("XP", justify="right", style="green")
    table.add_column("Minutes", justify="right")
    table.add_column("Tasks", justify="right")

    for day in weekly.daily:
        table.add_row(day.date, str(day.xp), str(day.minutes), str(day.tasks_completed))

    console.print(table)
    rprint(
        f"  XP: [green]{weekly.xp_total}[/green]  Minutes: {weekly.minutes_total}  "
        f"Streak: {weekly.streak.current} (best {weekly.streak.longest})"
    )

    styles = {"celebration": "yellow", "growth": "green", "alert": "red"}
    for highlight in weekly.highlights:
        style = styles.get(highlight.type, "white")
        rprint(f"  [{style}]★[/{style}] {highlight.title}: {highlight.description}")

    if weekly.coach_actions:
        rprint("\n[bold]Coach actions[/bold]")
        for action in weekly.coach_actions:
            rprint(f"  • {action.title} ({action.skill_id}): {action.description}")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
