"""Financial summary tool."""

from typing import Any

from pydantic import BaseModel

from advisor.services.financial_data import FinancialDataContext
from advisor.tools.base import EmptyInput, ToolDefinition

NO_DATA_ERROR = "User data not available."

FINANCIAL_SUMMARY_DESCRIPTION = """Retrieve a high-level summary of the user's financial health.

Purpose: Report total balance, total assets, total liabilities and net worth

Parameters: None

Example Usage:
- User says: "What's my total balance?" or "Summarize my financial health."
- Call: get_financial_summary()
- Present the figures with a financial_summary rich content block.

Important Notes:
- total_balance is cash on hand after replaying every transaction
- total_assets includes cash plus the value of all investment holdings
- Liabilities are not tracked yet and are reported as 0
"""


def create_financial_summary_tool(context: FinancialDataContext | None) -> ToolDefinition:
    async def get_financial_summary_handler(params: BaseModel) -> dict[str, Any]:
        if context is None:
            return {"error": NO_DATA_ERROR}

        total_balance = context.current_balance()
        total_assets = total_balance + context.total_asset_value()
        total_liabilities = 0.0
        return {
            "total_balance": round(total_balance, 2),
            "total_assets": round(total_assets, 2),
            "total_liabilities": total_liabilities,
            "net_worth": round(total_assets - total_liabilities, 2),
        }

    return ToolDefinition(
        name="get_financial_summary",
        description=FINANCIAL_SUMMARY_DESCRIPTION,
        input_schema_class=EmptyInput,
        handler=get_financial_summary_handler,
    )
