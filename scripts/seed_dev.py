"""Seed a local database with a super admin, a client, a supplier and a draft quote."""
from datetime import date
from decimal import Decimal
from uuid import uuid4

from quotebook import models  # noqa: F401
from quotebook.db import Base, SessionLocal, engine
from quotebook.models.client import Client
from quotebook.models.company_settings import CompanySettings
from quotebook.models.profile import Profile
from quotebook.models.supplier import Supplier
from quotebook.schemas.quote import QuoteCreate
from quotebook.services import quote_service


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(Profile.id).first():
            print("Database already seeded, skipping.")
            return

        admin = Profile(
            id=str(uuid4()),
            email="admin@motionsense.co.kr",
            full_name="관리자",
            role="super_admin",
        )
        db.add(admin)
        db.add(
            CompanySettings(
                company_name="모션센스",
                representative="대표",
                default_agency_fee_rate=Decimal("15"),
                default_vat_type="exclusive",
            )
        )
        client = Client(id=str(uuid4()), name="샘플 고객사", business_registration_number="123-45-67890")
        supplier = Supplier(id=str(uuid4()), name="촬영장비 렌탈")
        db.add_all([client, supplier])
        db.commit()

        quote = quote_service.create_quote(
            db,
            QuoteCreate(
                project_title="브랜드 홍보영상",
                client_id=client.id,
                issue_date=date.today(),
                agency_fee_rate=Decimal("15"),
                groups=[
                    {
                        "name": "촬영",
                        "items": [
                            {
                                "name": "장비",
                                "details": [
                                    {
                                        "name": "카메라 세트",
                                        "quantity": 1,
                                        "days": 2,
                                        "unit": "식",
                                        "unit_price": 500000,
                                        "cost_price": 300000,
                                        "supplier_id": supplier.id,
                                    }
                                ],
                            }
                        ],
                    },
                    {
                        "name": "편집",
                        "items": [
                            {
                                "name": "후반작업",
                                "details": [
                                    {
                                        "name": "편집",
                                        "days": 5,
                                        "unit": "일",
                                        "unit_price": 400000,
                                        "is_service": True,
                                    }
                                ],
                            }
                        ],
                    },
                ],
            ),
            admin,
        )
        print("Seeded admin", admin.email, "and quote", quote.quote_number)
    finally:
        db.close()


if __name__ == "__main__":
    main()
