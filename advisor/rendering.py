"""Terminal rendering of conversation messages with rich."""

import json
from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from advisor.models.messages import Message, Part, RichContentPart, TextPart, ToolCallPart, ToolResultPart
from advisor.models.rich_content import (
    ActionableSuggestionContent,
    BarChartContent,
    FinancialSummaryContent,
    KNOWN_RICH_CONTENT_TYPES,
    KpiDashboardContent,
    LineChartContent,
    RoadmapContent,
    TableContent,
)

ROLE_STYLES = {
    "user": ("You", "cyan"),
    "model": ("Quantum", "green"),
    "tool-log": ("Tools", "yellow"),
}


def unsupported_placeholder(tag: str) -> str:
    return f"[unsupported rich content: {tag}]"


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _series_table(items: list[dict], columns: list[str]) -> Table:
    table = Table(show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column)
    for item in items:
        table.add_row(*(_number(item.get(column, "")) for column in columns))
    return table


def render_rich_content(payload) -> RenderableType:
    """Render one rich content payload; unknown tags get a placeholder."""
    if isinstance(payload, TableContent):
        table = Table(show_header=True, header_style="bold")
        for header in payload.data.headers:
            table.add_column(header)
        for row in payload.data.rows:
            table.add_row(*(_number(cell) for cell in row))
        return table

    if isinstance(payload, BarChartContent):
        return _series_table(payload.data.items, ["name", payload.data.data_key])

    if isinstance(payload, LineChartContent):
        return _series_table(payload.data.items, [payload.data.data_key_x, payload.data.data_key_y])

    if isinstance(payload, FinancialSummaryContent):
        data = payload.data
        body = Text.assemble(
            ("Total balance: ", "bold"),
            _money(data.total_balance),
            ("\nTotal assets: ", "bold"),
            _money(data.total_assets),
            ("\nTotal liabilities: ", "bold"),
            _money(data.total_liabilities),
            ("\nNet worth: ", "bold"),
            _money(data.net_worth),
        )
        return Panel(body, title="Financial Summary", border_style="blue")

    if isinstance(payload, ActionableSuggestionContent):
        data = payload.data
        body = Text.assemble(data.description, "\n\n", (f"▶ {data.action_text}", "bold magenta"))
        return Panel(body, title=data.title, border_style="magenta")

    if isinstance(payload, KpiDashboardContent):
        table = Table(show_header=True, header_style="bold", title="Key Indicators")
        table.add_column("KPI")
        table.add_column("Value", justify="right")
        table.add_column("Trend", justify="right")
        for kpi in payload.data.kpis:
            value = f"{_number(kpi.value)}{kpi.unit or ''}"
            trend = f"{kpi.trend:+.1f}%" if kpi.trend is not None else ""
            table.add_row(kpi.label, value, trend)
        return table

    if isinstance(payload, RoadmapContent):
        lines = Text()
        if payload.data.title:
            lines.append(f"{payload.data.title}\n", style="bold")
        for i, milestone in enumerate(payload.data.milestones, start=1):
            lines.append(f"{i}. {milestone.title}")
            details = [detail for detail in (milestone.date, milestone.status) if detail]
            if details:
                lines.append(f" ({', '.join(details)})", style="dim")
            if milestone.description:
                lines.append(f"\n   {milestone.description}")
            lines.append("\n")
        lines.rstrip()
        return lines

    return Text(unsupported_placeholder(getattr(payload, "type", "unknown")), style="dim italic")


def render_part(part: Part) -> RenderableType:
    if isinstance(part, TextPart):
        return Markdown(part.text)
    if isinstance(part, ToolCallPart):
        return Text(f"→ {part.name}({json.dumps(part.args)})", style="dim")
    if isinstance(part, ToolResultPart):
        if part.is_error:
            return Text(f"✗ {part.name}: {part.response['error']}", style="red")
        return Text(f"✓ {part.name}", style="green")
    if isinstance(part, RichContentPart):
        return render_rich_content(part.payload)
    raise TypeError(f"Unknown message part: {part!r}")


def render_message(message: Message) -> RenderableType:
    """Render a message as a titled panel of its parts in order."""
    title, style = ROLE_STYLES[message.role]
    return Panel(
        Group(*(render_part(part) for part in message.parts)),
        title=f"[bold {style}]{title}[/bold {style}]",
        border_style=style,
        padding=(0, 1),
    )


def message_plain_text(message: Message) -> str:
    """Plain text view of a message for logs and transcripts."""
    lines = []
    for part in message.parts:
        if isinstance(part, TextPart):
            lines.append(part.text)
        elif isinstance(part, ToolCallPart):
            lines.append(f"-> {part.name} {json.dumps(part.args)}")
        elif isinstance(part, ToolResultPart):
            lines.append(f"<- {part.name} {json.dumps(part.response, default=str)}")
        elif isinstance(part, RichContentPart):
            tag = part.payload.type
            lines.append(f"[{tag}]" if tag in KNOWN_RICH_CONTENT_TYPES else unsupported_placeholder(tag))
    return "\n".join(lines)


def transcript_text(messages: Sequence[Message]) -> str:
    """Plain text transcript, one block per message headed by its role title."""
    return "\n\n".join(f"{ROLE_STYLES[message.role][0]}:\n{message_plain_text(message)}" for message in messages) + "\n"
