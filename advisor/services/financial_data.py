"""Financial data context shared by the advisor tools."""

from dataclasses import dataclass, field

from advisor.models.finance import Asset, LedgerAccount, LedgerAccountBalance, Transaction
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

STARTING_BALANCE = 5000.0


@dataclass
class FinancialDataContext:
    """Snapshot of the user's financial data.

    Tools only read from the snapshot, so several tools may use it concurrently
    within one round.
    """

    transactions: list[Transaction] = field(default_factory=list)
    assets: list[Asset] = field(default_factory=list)
    ledger_accounts: list[LedgerAccount] | None = None
    ledger_accounts_error: str | None = None
    starting_balance: float = STARTING_BALANCE

    def current_balance(self) -> float:
        """Replay transactions in date order over the starting balance."""
        balance = self.starting_balance
        for tx in sorted(self.transactions, key=lambda t: t.date):
            balance += tx.amount if tx.type == "income" else -tx.amount
        return balance

    def total_asset_value(self) -> float:
        return sum(asset.value for asset in self.assets)


def create_mock_financial_data() -> FinancialDataContext:
    """Create a small demo data set."""
    transactions = [
        Transaction("tx_001", "income", "Salary", "Monthly salary", 5200.00, "2024-07-01"),
        Transaction("tx_002", "expense", "Rent", "July rent", 1850.00, "2024-07-02"),
        Transaction("tx_003", "expense", "Groceries", "Whole Foods", 142.37, "2024-07-05", 8.2),
        Transaction("tx_004", "expense", "Dining", "Blue Bottle Coffee", 12.50, "2024-07-06", 0.9),
        Transaction("tx_005", "expense", "Travel", "Flight to Denver", 386.20, "2024-07-09", 310.0),
        Transaction("tx_006", "expense", "Groceries", "Trader Joe's", 88.14, "2024-07-12", 5.1),
        Transaction("tx_007", "expense", "Utilities", "Electric bill", 96.75, "2024-07-15"),
        Transaction("tx_008", "income", "Freelance", "Design contract", 1200.00, "2024-07-18"),
        Transaction("tx_009", "expense", "Entertainment", "Concert tickets", 210.00, "2024-07-20"),
        Transaction("tx_010", "expense", "Shopping", "Running shoes", 129.99, "2024-07-24", 14.0),
    ]
    assets = [
        Asset("Stocks", 40_000.0, category="equity", esg_rating=4, performance_ytd=12.5),
        Asset("Bonds", 25_000.0, category="fixed_income", esg_rating=5, performance_ytd=3.1),
        Asset("Crypto", 15_000.0, category="digital", esg_rating=2, performance_ytd=45.2),
        Asset("Real Estate", 20_000.0, category="property", esg_rating=3, performance_ytd=5.6),
    ]
    ledger_accounts = [
        LedgerAccount(
            id="la_operating",
            name="Operating Cash",
            description="Primary operating account",
            normal_balance="debit",
            available_balance=LedgerAccountBalance(amount=125_000_00, currency="USD"),
            posted_balance=LedgerAccountBalance(amount=130_000_00, currency="USD"),
        ),
        LedgerAccount(
            id="la_payroll",
            name="Payroll Reserve",
            description=None,
            normal_balance="credit",
            available_balance=LedgerAccountBalance(amount=48_250_50, currency="USD"),
            posted_balance=LedgerAccountBalance(amount=48_250_50, currency="USD"),
        ),
    ]
    logger.debug(f"Created mock financial data with {len(transactions)} transactions and {len(assets)} assets")
    return FinancialDataContext(transactions=transactions, assets=assets, ledger_accounts=ledger_accounts)


_financial_data: FinancialDataContext | None = None


def get_financial_data() -> FinancialDataContext:
    """Get or create the process-wide financial data snapshot."""
    global _financial_data
    if _financial_data is None:
        _financial_data = create_mock_financial_data()
    return _financial_data
