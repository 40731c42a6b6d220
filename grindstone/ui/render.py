from __future__ import annotations

"""Plain-text renderers for the timer, history and statistics views."""

from itertools import groupby

from rich.text import Text

from grindstone.core.app_state import AppState, ChartType, StatsPeriod
from grindstone.core.timer import TimerPhase, TimerSnapshot
from grindstone.data.models import CategoryStat, format_duration, parse_hex_color


PHASE_COLORS = {
    TimerPhase.WORK: "red",
    TimerPhase.SHORT_BREAK: "green",
    TimerPhase.LONG_BREAK: "blue",
}
CHART_COLORS = ["red", "cyan", "blue", "green", "yellow", "magenta"]
BAR_WIDTH = 40


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_total(seconds: int) -> str:
    hours, rest = divmod(int(seconds), 3600)
    return f"{hours}h {rest // 60}m"


def phase_line(snapshot: TimerSnapshot) -> Text:
    suffix = {"running": "", "paused": " (PAUSED)", "ready": " (READY)"}[snapshot.status]
    text = Text(snapshot.phase.label, style=f"bold {PHASE_COLORS[snapshot.phase]}")
    text.append(suffix)
    text.append(
        f"\nPomodoros until long break: {snapshot.sessions_until_long - snapshot.sessions_completed}",
        style="dim",
    )
    return text


def session_line(state: AppState) -> str:
    session = state.current_session
    if session is None:
        return "No session - press [n] to start a new session"
    return f'Session: "{session.name}" ({session.category})'


def timer_controls(state: AppState) -> str:
    timer = state.timer
    if timer.phase.is_break:
        return "[s] Skip Break  [p] Pause  [r] Reset  [n] New Session"
    # Stop only applies to an armed session; an auto-started work phase has none.
    stop = "  [x] Stop" if state.session.is_active else "  [n] New Session"
    if timer.is_running():
        return "[p] Pause  [r] Reset" + stop
    if timer.is_paused():
        return "[s] Resume  [r] Reset" + stop
    return "[s] Start  [n] New Session  [c] Settings"


def history_text(state: AppState, selected: int) -> Text:
    """Sessions grouped under day headers; ``selected`` indexes ``data.sessions``."""
    sessions = state.data.sessions
    if not sessions:
        return Text("No sessions yet. Start a pomodoro!", justify="center", style="dim")
    text = Text()
    index = 0
    for day, group in groupby(sessions, key=state.history_day_label):
        text.append(f"{day}\n", style="bold underline")
        for session in group:
            marker = "> " if index == selected else "  "
            style = "reverse" if index == selected else ""
            line = Text(marker, style=style)
            line.append(session.name, style=f"bold {style}".strip())
            line.append("  ")
            line.append(session.category, style="cyan")
            line.append("  ")
            line.append(session.format_duration(), style="yellow")
            line.append(
                f"  {session.start_datetime():%H:%M} - {session.end_datetime():%H:%M}\n",
                style="dim",
            )
            text.append_text(line)
            index += 1
    return text


def period_selector(current: StatsPeriod) -> Text:
    text = Text(justify="center")
    for period in StatsPeriod:
        if period is current:
            text.append(f"[ {period.label} ]", style="bold cyan")
        else:
            text.append(f"  {period.label}  ", style="dim")
    return text


def _category_color(name: str, index: int, colors: dict[str, str]) -> str:
    hex_color = colors.get(name)
    if hex_color:
        r, g, b = parse_hex_color(hex_color)
        return f"rgb({r},{g},{b})"
    return CHART_COLORS[index % len(CHART_COLORS)]


def bar_chart(stats: list[CategoryStat], colors: dict[str, str], width: int = BAR_WIDTH) -> Text:
    if not stats:
        return Text("No data for this period", justify="center", style="dim")
    top = max(stat.total_seconds for stat in stats) or 1
    label_width = max(len(stat.name) for stat in stats)
    text = Text()
    for i, stat in enumerate(stats):
        filled = max(1, round(width * stat.total_seconds / top)) if stat.total_seconds else 0
        text.append(f"{stat.name:<{label_width}} ")
        text.append("█" * filled, style=_category_color(stat.name, i, colors))
        text.append(f" {format_duration(stat.total_seconds)}\n", style="bold")
    return text


def share_chart(stats: list[CategoryStat], colors: dict[str, str], width: int = BAR_WIDTH) -> Text:
    """A single stacked bar split by category share, with a percentage legend."""
    total = sum(stat.total_seconds for stat in stats)
    if total == 0:
        return Text("No data for this period", justify="center", style="dim")
    text = Text()
    for i, stat in enumerate(stats):
        cells = round(width * stat.total_seconds / total)
        text.append("█" * cells, style=_category_color(stat.name, i, colors))
    text.append("\n\n")
    for i, stat in enumerate(stats):
        pct = stat.total_seconds / total * 100
        text.append("■ ", style=_category_color(stat.name, i, colors))
        text.append(f"{stat.name}: {format_duration(stat.total_seconds)} ({pct:.0f}%)\n")
    return text


def stats_text(state: AppState) -> Text:
    data = state.data
    colors = {c.name: c.color for c in data.categories}
    text = Text()
    text.append_text(period_selector(data.stats_period))
    text.append("\n\n")
    if data.chart_type is ChartType.BAR:
        text.append_text(bar_chart(data.category_stats, colors))
    else:
        text.append_text(share_chart(data.category_stats, colors))
    total = sum(stat.total_seconds for stat in data.category_stats)
    text.append(f"\nTotal: {format_total(total)}  |  Sessions: {len(data.sessions)}", style="bold")
    return text
