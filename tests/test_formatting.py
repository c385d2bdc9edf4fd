from datetime import date
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from certbatch.core.errors import ValidationError
from certbatch.core.formatting import (
    format_readable_date,
    ordinal_suffix,
    parse_date,
    percentage,
    title_case,
)


@pytest.mark.parametrize(
    ("day", "suffix"),
    [(1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"), (13, "th"), (21, "st"), (22, "nd"), (23, "rd"), (31, "st")],
)
def test_ordinal_suffix(day, suffix):
    assert ordinal_suffix(day) == suffix


def test_format_readable_date():
    assert format_readable_date(date(2024, 6, 21)) == "21st June, 2024"
    assert format_readable_date(date(2024, 1, 2)) == "2nd January, 2024"
    assert format_readable_date(date(2023, 12, 13)) == "13th December, 2023"


def test_title_case_only_touches_word_starts():
    assert title_case("green valley high school") == "Green Valley High School"
    assert title_case("iOS basics") == "IOS Basics"
    assert title_case("ai") == "Ai"
    assert title_case("") == ""


def test_parse_date_accepts_iso_strings():
    assert parse_date("2024-06-21", "date") == date(2024, 6, 21)


def test_parse_date_rejects_missing_and_garbage():
    with pytest.raises(ValidationError, match="todate is required"):
        parse_date("  ", "todate")
    with pytest.raises(ValidationError, match="not a valid date"):
        parse_date("not-a-date", "date")


def test_percentage_rounds_half_up_and_clamps():
    assert percentage(0, 3) == 0
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(5, 4) == 100
    assert percentage(3, 0) == 0
