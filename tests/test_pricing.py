from dataclasses import dataclass, field
from decimal import Decimal

import pytest

from quotebook.domain.pricing import calculate_quote, split_installments, split_vat


@dataclass
class D:
    quantity: Decimal = Decimal("1")
    days: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    cost_price: Decimal = Decimal("0")


@dataclass
class I:
    name: str
    details: list
    include_in_fee: bool = True


@dataclass
class G:
    name: str
    items: list = field(default_factory=list)
    include_in_fee: bool = True


def sample_groups():
    return [
        G(
            "Production",
            [I("Shooting", [D(Decimal("2"), Decimal("3"), Decimal("100000"), Decimal("60000"))])],
        ),
        G("Media", [I("Editing", [D(unit_price=Decimal("200000"))])], include_in_fee=False),
    ]


def calc(groups, rate="10", discount="10000", vat_type="exclusive"):
    return calculate_quote(
        groups,
        agency_fee_rate=Decimal(rate),
        discount_amount=Decimal(discount),
        vat_type=vat_type,
        vat_rate=Decimal("0.10"),
    )


def test_exclusive_vat_totals():
    c = calc(sample_groups())
    assert c.subtotal == Decimal("800000")
    assert c.fee_applicable_amount == Decimal("600000")
    assert c.fee_excluded_amount == Decimal("200000")
    assert c.agency_fee == Decimal("60000")
    assert c.discount_amount == Decimal("10000")
    assert c.total_before_vat == Decimal("850000")
    assert c.vat_amount == Decimal("85000")
    assert c.final_total == Decimal("935000")
    assert c.supply_amount == Decimal("850000")


def test_inclusive_vat_extracts_vat_from_total():
    c = calc(sample_groups(), vat_type="inclusive")
    assert c.final_total == Decimal("850000")
    assert c.vat_amount == Decimal("77273")
    assert c.supply_amount == Decimal("772727")
    assert c.supply_amount + c.vat_amount == c.final_total


def test_profit_excludes_vat():
    c = calc(sample_groups())
    assert c.total_cost == Decimal("360000")
    assert c.total_profit == Decimal("490000")
    assert c.profit_margin_percentage == Decimal("57.65")
    assert c.markup_percentage == Decimal("136.11")


def test_item_level_fee_exclusion():
    groups = [
        G(
            "Production",
            [
                I("Crew", [D(unit_price=Decimal("100000"))]),
                I("Rental", [D(unit_price=Decimal("50000"))], include_in_fee=False),
            ],
        )
    ]
    c = calc(groups, rate="20", discount="0")
    assert c.fee_applicable_amount == Decimal("100000")
    assert c.agency_fee == Decimal("20000")
    assert [i.include_in_fee for i in c.groups[0].items] == [True, False]


def test_discount_is_capped_and_total_never_negative():
    groups = [G("A", [I("a", [D(unit_price=Decimal("100"))])])]
    c = calc(groups, rate="0", discount="500")
    assert c.discount_amount == Decimal("100")
    assert c.total_before_vat == Decimal("0")
    assert c.vat_amount == Decimal("0")
    assert c.final_total == Decimal("0")


def test_fee_rounds_half_up_to_whole_won():
    groups = [G("A", [I("a", [D(unit_price=Decimal("12345"))])])]
    c = calc(groups, rate="10", discount="0")
    assert c.agency_fee == Decimal("1235")


def test_zero_cost_gives_zero_markup():
    groups = [G("A", [I("a", [D(unit_price=Decimal("1000"))])])]
    c = calc(groups, rate="0", discount="0")
    assert c.markup_percentage == Decimal("0")
    assert c.profit_margin_percentage == Decimal("100.00")


def test_empty_quote_is_all_zero():
    c = calc([], rate="0", discount="0")
    assert c.final_total == Decimal("0")
    assert c.profit_margin_percentage == Decimal("0")


def test_group_breakdown():
    c = calc(sample_groups())
    production, media = c.groups
    assert production.subtotal == Decimal("600000")
    assert production.cost == Decimal("360000")
    assert production.profit == Decimal("240000")
    assert media.include_in_fee is False
    assert media.subtotal == Decimal("200000")


@pytest.mark.parametrize("rate", ["-1", "100.01"])
def test_rejects_out_of_range_fee_rate(rate):
    with pytest.raises(ValueError):
        calc(sample_groups(), rate=rate)


def test_rejects_unknown_vat_type():
    with pytest.raises(ValueError):
        split_vat(Decimal("100"), "mixed", Decimal("0.1"))


def test_installments_last_absorbs_rounding():
    assert split_installments(Decimal("1000"), 3) == [Decimal("333"), Decimal("333"), Decimal("334")]
    parts = split_installments(Decimal("1001"), 2)
    assert sum(parts) == Decimal("1001")
    assert split_installments(Decimal("935000"), 1) == [Decimal("935000")]
