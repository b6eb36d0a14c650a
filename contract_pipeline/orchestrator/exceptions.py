class LedgerError(Exception):
    """Base exception for analysis persistence and balance errors."""

    code = "LEDGER_ERROR"


class InsufficientBalanceError(LedgerError):
    code = "INSUFFICIENT_BALANCE"

    def __init__(self, account_ref: str, balance: int) -> None:
        super().__init__(f"Account {account_ref} has insufficient credits ({balance})")
        self.account_ref = account_ref
        self.balance = balance


class GuestQuotaExceededError(LedgerError):
    code = "GUEST_QUOTA_EXCEEDED"

    def __init__(self, guest_ref: str, limit: int) -> None:
        super().__init__(f"Guest {guest_ref} has used all {limit} free analyses")
        self.guest_ref = guest_ref
        self.limit = limit


class AccountNotFoundError(LedgerError):
    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str) -> None:
        super().__init__(f"Account not found: {account_ref}")
        self.account_ref = account_ref


class AnalysisNotFoundError(LedgerError):
    code = "ANALYSIS_NOT_FOUND"

    def __init__(self, analysis_id: str) -> None:
        super().__init__(f"Analysis not found: {analysis_id}")
        self.analysis_id = analysis_id
