"""Credit ledger."""

from .service import CreditLedger, accrual_for, format_credits

__all__ = ["CreditLedger", "accrual_for", "format_credits"]
