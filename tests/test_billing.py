from decimal import Decimal

from backend.app.services.billing import quantize_money, recalculate_invoice_totals


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("1.005")) == Decimal("1.01")
    assert quantize_money(2) == Decimal("2.00")
    assert quantize_money(None) == Decimal("0.00")


def test_totals_derived_from_line_totals():
    totals = recalculate_invoice_totals(
        [Decimal("100.00"), Decimal("50.50")], tax=Decimal("10.00"), deposit=Decimal("60.00")
    )
    assert totals == {
        "subtotal": Decimal("150.50"),
        "tax": Decimal("10.00"),
        "total": Decimal("160.50"),
        "deposit": Decimal("60.00"),
        "remaining_balance": Decimal("100.50"),
    }


def test_supplied_totals_win():
    totals = recalculate_invoice_totals(
        [Decimal("100.00")],
        subtotal=Decimal("80"),
        total=Decimal("90"),
        remaining_balance=Decimal("5"),
    )
    assert totals["subtotal"] == Decimal("80.00")
    assert totals["total"] == Decimal("90.00")
    assert totals["remaining_balance"] == Decimal("5.00")


def test_balance_never_negative():
    totals = recalculate_invoice_totals([Decimal("10.00")], deposit=Decimal("25.00"))
    assert totals["remaining_balance"] == Decimal("0.00")
