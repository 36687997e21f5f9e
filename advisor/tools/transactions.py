"""Transaction lookup and spending analysis tools."""

from collections import defaultdict
from typing import Any

from pydantic import BaseModel, Field, model_validator

from advisor.services.financial_data import FinancialDataContext
from advisor.tools.base import EmptyInput, ToolDefinition
from advisor.tools.financial_summary import NO_DATA_ERROR


class GetTransactionsInput(BaseModel):
    """Input schema for the transaction lookup tool."""

    count: int = Field(20, ge=1, le=500, description="The number of transactions to retrieve. Defaults to 20.")
    min_amount: float | None = Field(None, ge=0, description="The minimum transaction amount to filter by.")
    max_amount: float | None = Field(None, ge=0, description="The maximum transaction amount to filter by.")
    category: str | None = Field(
        None,
        min_length=1,
        description="Filter transactions by a specific category (e.g., 'Groceries', 'Travel').",
        examples=["Groceries", "Travel"],
    )

    @model_validator(mode="after")
    def validate_amount_range(self) -> "GetTransactionsInput":
        """Reject an inverted amount range."""
        if self.min_amount is not None and self.max_amount is not None and self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot be greater than max_amount")
        return self


def create_transactions_tool(context: FinancialDataContext | None) -> ToolDefinition:
    async def get_transactions_handler(params: GetTransactionsInput) -> dict[str, Any]:
        """Fetch recent transactions, optionally filtered by amount and category."""
        if context is None:
            return {"error": NO_DATA_ERROR}

        transactions = context.transactions
        if params.min_amount is not None:
            transactions = [t for t in transactions if t.amount >= params.min_amount]
        if params.max_amount is not None:
            transactions = [t for t in transactions if t.amount <= params.max_amount]
        if params.category:
            wanted = params.category.lower()
            transactions = [t for t in transactions if t.category.lower() == wanted]

        return {"transactions": [t.as_dict() for t in transactions[: params.count]]}

    return ToolDefinition(
        name="get_transactions",
        description=(
            "Fetch a list of recent transactions. Can be filtered by minimum amount, maximum amount "
            "and category (case-insensitive). Returns at most `count` transactions, 20 by default."
        ),
        input_schema_class=GetTransactionsInput,
        handler=get_transactions_handler,
    )


def create_spending_by_category_tool(context: FinancialDataContext | None) -> ToolDefinition:
    async def analyze_spending_by_category_handler(params: BaseModel) -> dict[str, Any]:
        if context is None:
            return {"error": NO_DATA_ERROR}

        spending: dict[str, float] = defaultdict(float)
        for tx in context.transactions:
            if tx.type == "expense":
                spending[tx.category] += tx.amount

        ranked = sorted(spending.items(), key=lambda item: item[1], reverse=True)
        return {"spending_by_category": [{"name": name, "amount": round(amount, 2)} for name, amount in ranked]}

    return ToolDefinition(
        name="analyze_spending_by_category",
        description=(
            "Calculate total spending for each category over the recorded expenses, sorted from the "
            "largest category to the smallest. Well suited to a bar_chart rich content block."
        ),
        input_schema_class=EmptyInput,
        handler=analyze_spending_by_category_handler,
    )
