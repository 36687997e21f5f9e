"""Investment growth simulation tool."""

from typing import Any

from pydantic import BaseModel, Field

from advisor.services.financial_data import FinancialDataContext
from advisor.tools.base import ToolDefinition
from advisor.tools.financial_summary import NO_DATA_ERROR


class SimulateInvestmentGrowthInput(BaseModel):
    """Input schema for the investment growth simulation."""

    additional_monthly_contribution: float = Field(
        ...,
        ge=0,
        description="The extra amount to invest each month.",
        examples=[200, 500],
    )
    years: int = Field(10, ge=1, le=100, description="The number of years to simulate. Defaults to 10.")
    annual_return_rate: float = Field(
        7.0,
        ge=-100,
        le=100,
        description="The estimated annual return rate as a percentage (e.g., 7 for 7%). Defaults to 7.",
    )


def simulate_growth(principal: float, monthly_contribution: float, years: int, annual_return_rate: float):
    """Compound monthly and record the portfolio value at the end of each year."""
    monthly_rate = annual_return_rate / 100 / 12
    value = principal
    yearly: list[dict[str, float]] = []

    for month in range(1, years * 12 + 1):
        value = value * (1 + monthly_rate) + monthly_contribution
        if month % 12 == 0:
            yearly.append({"year": month // 12, "value": round(value, 2)})

    return round(value, 2), yearly


def create_simulate_investment_growth_tool(context: FinancialDataContext | None) -> ToolDefinition:
    async def simulate_investment_growth_handler(params: SimulateInvestmentGrowthInput) -> dict[str, Any]:
        if context is None:
            return {"error": NO_DATA_ERROR}

        final_value, simulation_data = simulate_growth(
            context.total_asset_value(),
            params.additional_monthly_contribution,
            params.years,
            params.annual_return_rate,
        )
        return {"final_value": final_value, "simulation_data": simulation_data}

    return ToolDefinition(
        name="simulate_investment_growth",
        description=(
            "Simulate the future value of the investment portfolio based on current holdings, an additional "
            "monthly contribution and an estimated annual return rate. Returns the final value and one data "
            "point per year, suitable for a line_chart rich content block (x: year, y: value)."
        ),
        input_schema_class=SimulateInvestmentGrowthInput,
        handler=simulate_investment_growth_handler,
    )
