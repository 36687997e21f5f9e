"""Corporate ledger accounts tool."""

from typing import Any

from pydantic import BaseModel

from advisor.services.financial_data import FinancialDataContext
from advisor.tools.base import EmptyInput, ToolDefinition
from advisor.tools.financial_summary import NO_DATA_ERROR

LEDGER_UNAVAILABLE_ERROR = "Ledger account data not available."


def create_ledger_accounts_tool(context: FinancialDataContext | None) -> ToolDefinition:
    async def get_ledger_accounts_handler(params: BaseModel) -> dict[str, Any]:
        if context is None:
            return {"error": NO_DATA_ERROR}
        if context.ledger_accounts_error:
            return {"error": context.ledger_accounts_error}
        if context.ledger_accounts is None:
            return {"error": LEDGER_UNAVAILABLE_ERROR}
        if not context.ledger_accounts:
            return {"summary": "No ledger accounts found. Please check configuration."}

        return {
            "accounts": [
                {
                    "name": account.name,
                    "description": account.description,
                    "available_balance": account.available_balance.value,
                    "posted_balance": account.posted_balance.value,
                    "currency": account.available_balance.currency,
                }
                for account in context.ledger_accounts
            ]
        }

    return ToolDefinition(
        name="get_ledger_accounts",
        description=(
            "Retrieve the corporate treasury ledger accounts, including their names, descriptions, "
            "available and posted balances in major currency units."
        ),
        input_schema_class=EmptyInput,
        handler=get_ledger_accounts_handler,
    )
