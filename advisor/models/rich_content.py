"""Rich content payloads rendered alongside model text.

Every payload declares its ``type`` tag first. Consumers switch on the tag and
must render a placeholder for tags they do not know, so unknown tags parse as
``UnknownRichContent`` instead of failing validation.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel


class _PayloadData(BaseModel):
    """Base for payload bodies; accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TableData(_PayloadData):
    headers: list[str]
    rows: list[list[str | int | float]]


class TableContent(BaseModel):
    """Tabular data with a header row."""

    model_config = ConfigDict(frozen=True)

    type: Literal["table"] = "table"
    data: TableData


class BarChartData(_PayloadData):
    data_key: str
    items: list[dict[str, str | int | float]]


class BarChartContent(BaseModel):
    """Bar chart over named items."""

    model_config = ConfigDict(frozen=True)

    type: Literal["bar_chart"] = "bar_chart"
    data: BarChartData


class LineChartData(_PayloadData):
    data_key_x: str
    data_key_y: str
    items: list[dict[str, str | int | float]]


class LineChartContent(BaseModel):
    """Line chart of one series."""

    model_config = ConfigDict(frozen=True)

    type: Literal["line_chart"] = "line_chart"
    data: LineChartData


class FinancialSummaryData(_PayloadData):
    total_balance: float
    total_assets: float
    total_liabilities: float
    net_worth: float


class FinancialSummaryContent(BaseModel):
    """Balance, assets, liabilities and net worth snapshot."""

    model_config = ConfigDict(frozen=True)

    type: Literal["financial_summary"] = "financial_summary"
    data: FinancialSummaryData


class ActionableSuggestionData(_PayloadData):
    title: str
    description: str
    action_text: str
    action_payload: dict[str, Any] = Field(default_factory=dict)


class ActionableSuggestionContent(BaseModel):
    """A proactive suggestion with a single call to action."""

    model_config = ConfigDict(frozen=True)

    type: Literal["actionable_suggestion"] = "actionable_suggestion"
    data: ActionableSuggestionData


class Kpi(_PayloadData):
    label: str
    value: float | str
    unit: str | None = None
    trend: float | None = None  # percent change


class KpiDashboardData(_PayloadData):
    kpis: list[Kpi]


class KpiDashboardContent(BaseModel):
    """A grid of key performance indicators."""

    model_config = ConfigDict(frozen=True)

    type: Literal["kpi_dashboard"] = "kpi_dashboard"
    data: KpiDashboardData


class Milestone(_PayloadData):
    title: str
    date: str | None = None
    status: str | None = None
    description: str | None = None


class RoadmapData(_PayloadData):
    title: str | None = None
    milestones: list[Milestone]


class RoadmapContent(BaseModel):
    """Ordered milestones towards a goal."""

    model_config = ConfigDict(frozen=True)

    type: Literal["roadmap"] = "roadmap"
    data: RoadmapData


class UnknownRichContent(BaseModel):
    """Payload with a tag this version does not understand."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


KNOWN_RICH_CONTENT_TYPES = frozenset(
    {
        "table",
        "bar_chart",
        "line_chart",
        "financial_summary",
        "actionable_suggestion",
        "kpi_dashboard",
        "roadmap",
    }
)


def _rich_content_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if tag in KNOWN_RICH_CONTENT_TYPES else "unknown"


RichContent = Annotated[
    Annotated[TableContent, Tag("table")]
    | Annotated[BarChartContent, Tag("bar_chart")]
    | Annotated[LineChartContent, Tag("line_chart")]
    | Annotated[FinancialSummaryContent, Tag("financial_summary")]
    | Annotated[ActionableSuggestionContent, Tag("actionable_suggestion")]
    | Annotated[KpiDashboardContent, Tag("kpi_dashboard")]
    | Annotated[RoadmapContent, Tag("roadmap")]
    | Annotated[UnknownRichContent, Tag("unknown")],
    Discriminator(_rich_content_tag),
]
