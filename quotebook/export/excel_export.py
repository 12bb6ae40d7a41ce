from __future__ import annotations

from io import BytesIO
from typing import IO, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font

from quotebook.domain.pricing import QuoteCalculation, detail_amount
from quotebook.models.company_settings import CompanySettings
from quotebook.models.quote import Quote

VAT_LABELS = {"exclusive": "VAT 별도", "inclusive": "VAT 포함"}

HEADER = ["구분", "항목", "세부내역", "수량", "일수", "단위", "단가", "금액", "비고"]


def export_quote_to_excel(
    quote: Quote,
    calc: QuoteCalculation,
    target: Union[str, IO[bytes]],
    company: Optional[CompanySettings] = None,
) -> None:
    """
    견적서 workbook: kop, groep/item/detail-regels, totalenblok.
    target is een pad of een binair file-object.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "견적서"
    bold = Font(bold=True)

    ws.append(["견 적 서"])
    ws["A1"].font = Font(bold=True, size=16)
    ws.append([])
    ws.append(["견적번호", quote.quote_number])
    ws.append(["프로젝트", quote.project_title])
    ws.append(["고객사", quote.customer_name_snapshot])
    ws.append(["사업자번호", quote.business_registration_number or ""])
    ws.append(["발행일", quote.issue_date.isoformat()])
    ws.append(["유효기간", quote.valid_until.isoformat() if quote.valid_until else ""])
    ws.append(["부가세", VAT_LABELS.get(quote.vat_type, quote.vat_type)])
    if company is not None:
        ws.append(["공급자", company.company_name])
        ws.append(["대표자", company.representative or ""])
        ws.append(["연락처", company.phone or ""])
    ws.append([])

    ws.append(HEADER)
    for cell in ws[ws.max_row]:
        cell.font = bold

    for group in quote.groups:
        for item in group.items:
            for detail in item.details:
                ws.append(
                    [
                        group.name,
                        item.name,
                        detail.name,
                        float(detail.quantity),
                        float(detail.days),
                        detail.unit,
                        int(detail.unit_price),
                        int(detail_amount(detail)),
                        "" if (group.include_in_fee and item.include_in_fee) else "수수료 제외",
                    ]
                )

    ws.append([])
    totals = [
        ("소계", calc.subtotal),
        ("대행수수료", calc.agency_fee),
        ("할인", -calc.discount_amount),
        ("공급가액", calc.supply_amount),
        ("부가세", calc.vat_amount),
        ("합계", calc.final_total),
    ]
    for label, amount in totals:
        ws.append(["", "", "", "", "", "", label, int(amount)])
        ws.cell(row=ws.max_row, column=7).font = bold

    if quote.notes:
        ws.append([])
        ws.append(["비고", quote.notes])
        ws.cell(row=ws.max_row, column=2).alignment = Alignment(wrap_text=True)

    for col, width in zip("ABCDEFGHI", (16, 20, 28, 8, 8, 8, 14, 16, 14)):
        ws.column_dimensions[col].width = width

    wb.save(target)


def quote_workbook_bytes(
    quote: Quote, calc: QuoteCalculation, company: Optional[CompanySettings] = None
) -> bytes:
    buf = BytesIO()
    export_quote_to_excel(quote, calc, buf, company)
    return buf.getvalue()
