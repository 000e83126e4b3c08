"""Tests for shared utilities."""

import re
from datetime import date
from decimal import Decimal

from app.shared.schemas import PaginationParams
from app.shared.utils import paginate_response, reference_number, round_half_up


def test_reference_number_format():
    ref = reference_number("ORD", date(2024, 1, 15))

    assert re.fullmatch(r"ORD-20240115-[0-9A-F]{6}", ref)


def test_reference_numbers_differ():
    day = date(2024, 1, 15)
    assert reference_number("MR", day) != reference_number("MR", day)


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(Decimal("2.5")) == Decimal("3")
    assert round_half_up(Decimal("3.5")) == Decimal("4")
    assert round_half_up(1.005, 2) == Decimal("1.01")
    assert round_half_up(7) == Decimal("7")


def test_paginate_response_computes_pages():
    page = paginate_response([1, 2], total=45, pagination=PaginationParams(page=2, page_size=20))

    assert page.pages == 3
    assert page.page == 2
    assert page.items == [1, 2]


def test_paginate_response_empty():
    page = paginate_response([], total=0, pagination=PaginationParams())
    assert page.pages == 0
