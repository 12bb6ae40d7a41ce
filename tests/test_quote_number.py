from datetime import date

import pytest

from quotebook.core.errors import ConflictError
from quotebook.domain.quote_number import format_quote_number, next_quote_number
from quotebook.models.quote import Quote


def _quote(number: str, day: date) -> Quote:
    return Quote(
        id=number,
        quote_number=number,
        project_title="x",
        customer_name_snapshot="c",
        issue_date=day,
        created_by="u",
    )


def test_format():
    assert format_quote_number(date(2026, 3, 5), 7) == "Q20260305007"
    with pytest.raises(ValueError):
        format_quote_number(date(2026, 3, 5), 1000)


def test_first_number_of_the_day(db):
    assert next_quote_number(db, date(2026, 3, 5)) == "Q20260305001"


def test_sequence_is_per_day(db):
    day = date(2026, 3, 5)
    db.add_all([_quote("Q20260305001", day), _quote("Q20260305002", day)])
    db.add(_quote("Q20260304009", date(2026, 3, 4)))
    db.commit()

    assert next_quote_number(db, day) == "Q20260305003"
    assert next_quote_number(db, date(2026, 3, 6)) == "Q20260306001"


def test_exhausted_day_is_a_conflict(db):
    day = date(2026, 3, 5)
    db.add(_quote("Q20260305999", day))
    db.commit()

    with pytest.raises(ConflictError):
        next_quote_number(db, day)
