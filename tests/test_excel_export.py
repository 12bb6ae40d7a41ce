from openpyxl import load_workbook

from quotebook.export.excel_export import HEADER, export_quote_to_excel
from quotebook.models.company_settings import CompanySettings
from quotebook.repositories.quotes import get_quote_by_id
from quotebook.services.quote_service import calculate_stored


def _rows(path):
    ws = load_workbook(path).active
    return ws, [list(r) for r in ws.iter_rows(values_only=True)]


def test_export_writes_details_and_totals(tmp_path, db, create_quote, member_headers):
    created = create_quote(member_headers, notes="촬영 2일 포함")
    quote = get_quote_by_id(db, created["id"])
    target = tmp_path / "quote.xlsx"

    export_quote_to_excel(quote, calculate_stored(quote), str(target))

    ws, rows = _rows(target)
    assert ws.title == "견적서"
    assert rows[0][0] == "견 적 서"
    assert ["견적번호", quote.quote_number] == rows[2][:2]

    header_idx = next(i for i, r in enumerate(rows) if r[: len(HEADER)] == HEADER)
    camera = rows[header_idx + 1]
    assert camera[:3] == ["Production", "Shooting", "Camera crew"]
    assert camera[7] == 600000
    edit = rows[header_idx + 2]
    assert edit[2] == "Edit"
    assert edit[8] == "수수료 제외"

    totals = {r[6]: r[7] for r in rows if r[6] in ("소계", "대행수수료", "할인", "공급가액", "부가세", "합계")}
    assert totals == {
        "소계": 800000,
        "대행수수료": 60000,
        "할인": -10000,
        "공급가액": 850000,
        "부가세": 85000,
        "합계": 935000,
    }
    assert rows[-1][:2] == ["비고", "촬영 2일 포함"]


def test_export_includes_company_block(tmp_path, db, create_quote, member_headers):
    created = create_quote(member_headers, vat_type="inclusive")
    quote = get_quote_by_id(db, created["id"])
    company = CompanySettings(company_name="모션센스", representative="홍길동", phone="02-000-0000")
    target = tmp_path / "quote.xlsx"

    export_quote_to_excel(quote, calculate_stored(quote), str(target), company)

    _, rows = _rows(target)
    labels = {r[0]: r[1] for r in rows if r and r[0]}
    assert labels["공급자"] == "모션센스"
    assert labels["대표자"] == "홍길동"
    assert labels["부가세"] == "VAT 포함"
