"""Double-entry legs for a stock reward.

A reward is booked as the company buying stock on the user's behalf:

    Dr stock_inventory  principal      (quantity = reward quantity)
        Cr cash                        principal
    Dr fees_expense     total fees
        Cr cash                        total fees
"""
import uuid
from collections.abc import Iterable
from decimal import Decimal

from stock_rewards.db.models import AccountType, LedgerEntry
from stock_rewards.errors import LedgerImbalanceError
from stock_rewards.services.fees import FeeBreakdown
from stock_rewards.services.money import ZERO


def build_reward_entries(
    transaction_id: uuid.UUID,
    symbol: str,
    quantity: Decimal,
    fees: FeeBreakdown,
    reference_id: str,
) -> list[LedgerEntry]:
    """Return the four legs of the reward transaction (not yet added to a session)."""
    return [
        LedgerEntry(
            transaction_id=transaction_id,
            account_type=AccountType.STOCK_INVENTORY.value,
            account_symbol=symbol,
            debit_amount=fees.principal,
            credit_amount=ZERO,
            stock_quantity=quantity,
            description=f"Stock reward: {symbol} x {quantity:.6f}",
            reference_id=reference_id,
        ),
        LedgerEntry(
            transaction_id=transaction_id,
            account_type=AccountType.CASH.value,
            account_symbol="",
            debit_amount=ZERO,
            credit_amount=fees.principal,
            description=f"Cash outflow for stock purchase: {symbol}",
            reference_id=reference_id,
        ),
        LedgerEntry(
            transaction_id=transaction_id,
            account_type=AccountType.FEES_EXPENSE.value,
            account_symbol="",
            debit_amount=fees.total_fees,
            credit_amount=ZERO,
            description=f"Brokerage, STT, GST for {symbol}",
            reference_id=reference_id,
        ),
        LedgerEntry(
            transaction_id=transaction_id,
            account_type=AccountType.CASH.value,
            account_symbol="",
            debit_amount=ZERO,
            credit_amount=fees.total_fees,
            description=f"Cash outflow for fees: {symbol}",
            reference_id=reference_id,
        ),
    ]


def totals(entries: Iterable[LedgerEntry]) -> tuple[Decimal, Decimal]:
    """(sum of debits, sum of credits)."""
    debit = credit = ZERO
    for entry in entries:
        debit += entry.debit_amount
        credit += entry.credit_amount
    return debit, credit


def ensure_balanced(entries: Iterable[LedgerEntry]) -> None:
    """Raise LedgerImbalanceError unless debits equal credits."""
    debit, credit = totals(entries)
    if debit != credit:
        raise LedgerImbalanceError(
            f"Ledger transaction is not balanced: debit={debit} credit={credit}"
        )
