# quotebook/domain/pricing.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Sequence

WON = Decimal("1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

VAT_TYPES = ("exclusive", "inclusive")


def qwon(x: Decimal) -> Decimal:
    return Decimal(x).quantize(WON, rounding=ROUND_HALF_UP)


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return (part / whole * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# Both ORM rows and request schemas fit these shapes.
class DetailLike(Protocol):
    quantity: Decimal
    days: Decimal
    unit_price: Decimal
    cost_price: Decimal


class ItemLike(Protocol):
    name: str
    include_in_fee: bool
    details: Sequence[DetailLike]


class GroupLike(Protocol):
    name: str
    include_in_fee: bool
    items: Sequence[ItemLike]


@dataclass(frozen=True)
class ItemBreakdown:
    name: str
    include_in_fee: bool
    subtotal: Decimal
    cost: Decimal
    profit: Decimal


@dataclass(frozen=True)
class GroupBreakdown:
    name: str
    include_in_fee: bool
    subtotal: Decimal
    cost: Decimal
    profit: Decimal
    items: list[ItemBreakdown] = field(default_factory=list)


@dataclass(frozen=True)
class QuoteCalculation:
    subtotal: Decimal
    fee_applicable_amount: Decimal
    fee_excluded_amount: Decimal
    agency_fee: Decimal
    discount_amount: Decimal
    total_before_vat: Decimal
    vat_amount: Decimal
    final_total: Decimal
    supply_amount: Decimal
    total_cost: Decimal
    total_profit: Decimal
    profit_margin_percentage: Decimal
    markup_percentage: Decimal
    groups: list[GroupBreakdown] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "fee_applicable_amount": self.fee_applicable_amount,
            "fee_excluded_amount": self.fee_excluded_amount,
            "agency_fee": self.agency_fee,
            "discount_amount": self.discount_amount,
            "total_before_vat": self.total_before_vat,
            "vat_amount": self.vat_amount,
            "final_total": self.final_total,
            "supply_amount": self.supply_amount,
            "total_cost": self.total_cost,
            "total_profit": self.total_profit,
            "profit_margin_percentage": self.profit_margin_percentage,
            "markup_percentage": self.markup_percentage,
            "groups": [
                {
                    "name": g.name,
                    "include_in_fee": g.include_in_fee,
                    "subtotal": g.subtotal,
                    "cost": g.cost,
                    "profit": g.profit,
                    "items": [
                        {
                            "name": i.name,
                            "include_in_fee": i.include_in_fee,
                            "subtotal": i.subtotal,
                            "cost": i.cost,
                            "profit": i.profit,
                        }
                        for i in g.items
                    ],
                }
                for g in self.groups
            ],
        }


def detail_amount(detail: DetailLike) -> Decimal:
    return Decimal(detail.quantity) * Decimal(detail.days) * Decimal(detail.unit_price)


def detail_cost(detail: DetailLike) -> Decimal:
    return Decimal(detail.quantity) * Decimal(detail.days) * Decimal(detail.cost_price)


@dataclass(frozen=True)
class VatSplit:
    supply_amount: Decimal
    vat_amount: Decimal
    final_total: Decimal


def split_vat(total_before_vat: Decimal, vat_type: str, vat_rate: Decimal) -> VatSplit:
    """
    exclusive: VAT komt bovenop het bedrag.
    inclusive: het bedrag bevat al VAT; vat = total * r / (1 + r).
    """
    rate = Decimal(vat_rate)
    base = qwon(total_before_vat)
    if vat_type == "inclusive":
        vat = qwon(base * rate / (1 + rate))
        return VatSplit(supply_amount=base - vat, vat_amount=vat, final_total=base)
    if vat_type != "exclusive":
        raise ValueError(f"Unknown vat_type: {vat_type}")
    vat = qwon(base * rate)
    return VatSplit(supply_amount=base, vat_amount=vat, final_total=base + vat)


def calculate_quote(
    groups: Iterable[GroupLike],
    *,
    agency_fee_rate: Decimal,
    discount_amount: Decimal,
    vat_type: str,
    vat_rate: Decimal,
) -> QuoteCalculation:
    """
    Rekent een offerte door: subtotaal, agency fee over de fee-eligible regels,
    korting (begrensd), VAT en winst.

    Een detail telt alleen mee voor de fee als zowel zijn groep als zijn item
    include_in_fee hebben.
    """
    rate = Decimal(agency_fee_rate)
    if rate < 0 or rate > HUNDRED:
        raise ValueError("agency_fee_rate must be between 0 and 100")
    requested_discount = Decimal(discount_amount)
    if requested_discount < 0:
        raise ValueError("discount_amount must be >= 0")

    subtotal = ZERO
    fee_applicable = ZERO
    total_cost = ZERO
    group_rows: list[GroupBreakdown] = []

    for group in groups:
        g_sub = ZERO
        g_cost = ZERO
        item_rows: list[ItemBreakdown] = []
        for item in group.items:
            i_sub = ZERO
            i_cost = ZERO
            for detail in item.details:
                i_sub += detail_amount(detail)
                i_cost += detail_cost(detail)
            if group.include_in_fee and item.include_in_fee:
                fee_applicable += i_sub
            item_rows.append(
                ItemBreakdown(
                    name=item.name,
                    include_in_fee=bool(item.include_in_fee),
                    subtotal=qwon(i_sub),
                    cost=qwon(i_cost),
                    profit=qwon(i_sub - i_cost),
                )
            )
            g_sub += i_sub
            g_cost += i_cost
        group_rows.append(
            GroupBreakdown(
                name=group.name,
                include_in_fee=bool(group.include_in_fee),
                subtotal=qwon(g_sub),
                cost=qwon(g_cost),
                profit=qwon(g_sub - g_cost),
                items=item_rows,
            )
        )
        subtotal += g_sub
        total_cost += g_cost

    subtotal = qwon(subtotal)
    fee_applicable = qwon(fee_applicable)
    total_cost = qwon(total_cost)

    agency_fee = qwon(fee_applicable * rate / HUNDRED)
    discount = min(qwon(requested_discount), subtotal + agency_fee)
    total_before_vat = max(ZERO, subtotal + agency_fee - discount)

    vat = split_vat(total_before_vat, vat_type, vat_rate)
    profit = vat.supply_amount - total_cost

    return QuoteCalculation(
        subtotal=subtotal,
        fee_applicable_amount=fee_applicable,
        fee_excluded_amount=subtotal - fee_applicable,
        agency_fee=agency_fee,
        discount_amount=discount,
        total_before_vat=total_before_vat,
        vat_amount=vat.vat_amount,
        final_total=vat.final_total,
        supply_amount=vat.supply_amount,
        total_cost=total_cost,
        total_profit=profit,
        profit_margin_percentage=_pct(profit, vat.supply_amount),
        markup_percentage=_pct(profit, total_cost),
        groups=group_rows,
    )


def split_installments(total: Decimal, periods: int) -> list[Decimal]:
    """Gelijke termijnen in hele won; de laatste termijn vangt de afronding op."""
    if periods < 1:
        raise ValueError("periods must be >= 1")
    total = qwon(total)
    base = (total / periods).quantize(WON, rounding=ROUND_HALF_UP)
    parts = [base] * (periods - 1)
    parts.append(total - base * (periods - 1))
    return parts
