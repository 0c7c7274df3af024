"""Fee computation for stock purchases backing a reward."""
from dataclasses import dataclass
from decimal import Decimal

from stock_rewards.services.money import q_money


@dataclass(frozen=True)
class FeeBreakdown:
    """Principal, individual fee components and totals of one purchase."""

    principal: Decimal
    brokerage: Decimal
    stt: Decimal
    gst: Decimal

    @property
    def total_fees(self) -> Decimal:
        return self.brokerage + self.stt + self.gst

    @property
    def total_cost(self) -> Decimal:
        return self.principal + self.total_fees


@dataclass(frozen=True)
class FeeSchedule:
    """Rates applied to principal = price * quantity.

    Defaults: brokerage 0.1%, securities transaction tax 0.025%, GST 18% of brokerage.
    """

    brokerage_rate: Decimal = Decimal("0.001")
    stt_rate: Decimal = Decimal("0.00025")
    gst_rate: Decimal = Decimal("0.18")

    def compute(self, price: Decimal, quantity: Decimal) -> FeeBreakdown:
        principal = q_money(price * quantity)
        brokerage = q_money(principal * self.brokerage_rate)
        return FeeBreakdown(
            principal=principal,
            brokerage=brokerage,
            stt=q_money(principal * self.stt_rate),
            gst=q_money(brokerage * self.gst_rate),
        )
