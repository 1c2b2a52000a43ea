"""
End-to-end walkthrough of the derivation engine.

This script exercises:
1. Configuration loading
2. Session aggregation (including a rejected reading)
3. Change indicators between two periods
4. Health score and insights
5. Ignored-metric registry with debounced persistence

Run with: uv run python demo.py
"""

import asyncio
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.storage import JsonFileStore
from healthcore.config import get_config
from healthcore.domain.models import (
    BloodTestReport,
    MetricReference,
    MetricValue,
    Session,
    SleepEntry,
)
from healthcore.domain.policies import policy_for
from healthcore.errors import ValidationError
from healthcore.log import configure_logging
from healthcore.services import (
    IgnoredMetricRegistry,
    build_session,
    calculate_health_score,
    compose_insights,
    format_change,
    summarize_metrics,
)
from healthcore.services.scoring import score_label
from healthcore.services.sessions import calculate_bp_stats, summarize

console = Console()


def build_sessions() -> list[Session]:
    console.print(Panel("Session Aggregation", style="blue"))

    start = datetime(2025, 1, 6, 7, 30)
    sessions = []
    for day in range(8):
        # Pressure drifts down over the week
        base = 142 - day * 2
        sessions.append(
            build_session(
                f"session-{day}",
                start + timedelta(days=day),
                [
                    {"systolic": base + 2, "diastolic": 88, "pulse": 72},
                    {"systolic": base, "diastolic": 86},
                ],
            )
        )

    table = Table(title="Sessions")
    table.add_column("Date", style="cyan")
    table.add_column("Time of day")
    table.add_column("Reading", style="green")
    table.add_column("Pulse")
    table.add_column("Count", justify="right")
    for session in sessions:
        table.add_row(
            session.recorded_at.date().isoformat(),
            session.time_of_day.value,
            f"{session.systolic}/{session.diastolic}",
            str(session.pulse or "-"),
            str(session.reading_count),
        )
    console.print(table)

    try:
        build_session("bad", start, [{"systolic": 300, "diastolic": 80}])
    except ValidationError as e:
        console.print(f"Rejected as expected: {e.message}", style="yellow")

    return sessions


def show_changes(sessions: list[Session]) -> None:
    console.print(Panel("Change Indicators", style="blue"))

    summaries = summarize(sessions)
    current = calculate_bp_stats(summaries[4:])
    previous = calculate_bp_stats(summaries[:4])

    table = Table(title="Recent vs previous")
    table.add_column("Metric", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Previous", justify="right")
    table.add_column("Change", justify="right")
    for metric in ("systolic", "diastolic", "pulse", "pp", "map"):
        now = current[metric]["avg"]
        before = previous[metric]["avg"]
        display = format_change(now, before, policy_for(metric))
        style = {"improving": "green", "worsening": "red"}.get(display.type.value, "white")
        change = display.delta_text + (f" ({display.pct_text})" if display.pct_text else "")
        table.add_row(
            metric,
            f"{now:.1f}" if now is not None else "-",
            f"{before:.1f}" if before is not None else "-",
            f"[{style}]{change}[/{style}]",
        )
    console.print(table)


def show_score(sessions: list[Session]) -> None:
    console.print(Panel("Health Score", style="blue"))

    summaries = summarize(sessions)
    sleep_entries = [
        SleepEntry(
            id=f"sleep-{i}",
            date=date(2025, 1, 5) + timedelta(days=i),
            duration_minutes=minutes,
            deep_sleep_pct=14,
            rem_sleep_pct=18,
            resting_hr=58,
            hrv_high=55,
        )
        for i, minutes in enumerate([330, 480, 300, 470, 350, 460, 420, 440])
    ]

    score = calculate_health_score(summaries, sleep_entries)
    console.print(f"Overall: {score.overall} ({score_label(score.overall)})", style="bold")
    if score.bp_score:
        console.print(f"  BP: {score.bp_score.score} [{score.bp_score.category}]")
    if score.sleep_score:
        console.print(f"  Sleep: {score.sleep_score.score}")
    console.print(f"  Driver: {score.primary_driver}")
    console.print(f"  Detractor: {score.primary_detractor}")
    console.print(f"  Action: {score.action_item}")

    console.print("\nInsights:")
    for insight in compose_insights(score, summaries, sleep_entries):
        console.print(f"  • {insight}")


async def show_registry(path: Path) -> None:
    console.print(Panel("Ignored Metrics", style="blue"))

    reports = [
        BloodTestReport(
            id="r1",
            date=date(2024, 6, 1),
            metrics={
                "ldl": MetricValue(value=3.9, unit="mmol/L", reference=MetricReference(max=3.5)),
                "hemoglobin": MetricValue(
                    value=150, unit="g/L", reference=MetricReference(min=135, max=175)
                ),
            },
        ),
        BloodTestReport(
            id="r2",
            date=date(2025, 1, 10),
            metrics={
                "ldl": MetricValue(value=3.2, unit="mmol/L", reference=MetricReference(max=3.5)),
                "hemoglobin": MetricValue(
                    value=131, unit="g/L", reference=MetricReference(min=135, max=175)
                ),
            },
        ),
    ]

    store = JsonFileStore(path)
    async with IgnoredMetricRegistry(store, get_config().registry).open() as registry:
        registry.ignore("hemoglobin")
        for summary in summarize_metrics(reports, registry):
            console.print(
                f"  {summary.key}: {summary.value} {summary.unit} "
                f"[{summary.status}] {summary.change.type.value}"
            )
        console.print(f"Pending write before exit: {registry.has_pending_write}", style="yellow")

    console.print(f"Persisted: {store.get(get_config().registry.storage_key)}", style="green")


async def main() -> None:
    configure_logging(get_config().logging)
    console.print(Panel("Personal Health Core - Walkthrough", style="bold blue"))

    sessions = build_sessions()
    show_changes(sessions)
    show_score(sessions)

    with tempfile.TemporaryDirectory() as tmp:
        await show_registry(Path(tmp) / "store.json")


if __name__ == "__main__":
    asyncio.run(main())
