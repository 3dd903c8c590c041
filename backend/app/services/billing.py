"""Billing arithmetic for invoices."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

ZERO = Decimal("0.00")


def quantize_money(value: Decimal | float | int | None) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def recalculate_invoice_totals(
    line_totals: Iterable[Decimal],
    *,
    subtotal: Optional[Decimal] = None,
    tax: Optional[Decimal] = None,
    total: Optional[Decimal] = None,
    deposit: Optional[Decimal] = None,
    remaining_balance: Optional[Decimal] = None,
) -> dict:
    """Fill in whichever totals the caller left out.

    Supplied values win; missing ones are derived: subtotal from the line
    totals, total as subtotal + tax, remaining balance as total - deposit
    (never below zero).
    """
    tax_value = quantize_money(tax)
    deposit_value = quantize_money(deposit)
    subtotal_value = quantize_money(subtotal) if subtotal is not None else quantize_money(sum(line_totals, ZERO))
    total_value = quantize_money(total) if total is not None else subtotal_value + tax_value
    if remaining_balance is not None:
        balance = quantize_money(remaining_balance)
    else:
        balance = total_value - deposit_value
        if balance < ZERO:
            balance = ZERO
    return {
        "subtotal": subtotal_value,
        "tax": tax_value,
        "total": total_value,
        "deposit": deposit_value,
        "remaining_balance": balance,
    }
