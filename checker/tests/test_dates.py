"""
Unit tests for commitment date parsing and the three page strategies.

Text functions are pure; page strategies run against the in-memory page double.
"""

from __future__ import annotations

import pytest
from conftest import FakeElement, FakePage

from checker.dates import (
    extract_commitment_date,
    extract_date_from_text,
    extract_date_near_keyword,
    normalize_date,
)
from checker.validators import is_valid_commitment_date

# --- Normalization ---


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("15-08-2025", "15-08-2025"),
        ("5-8-2025", "05-08-2025"),
        ("5/8/2025", "05-08-2025"),
        ("15 de agosto de 2025", "15-08-2025"),
        ("3 de Septiembre de 2025", "03-09-2025"),
        ("August 15, 2025", "15-08-2025"),
        ("Aug 15, 2025", "15-08-2025"),
        ("dic 24 2025", "24-12-2025"),
    ],
)
def test_normalize_date_known_forms(raw, expected):
    assert normalize_date(raw) == expected


@pytest.mark.parametrize("value", ["01-01-2025", "29-02-2024", "31-12-2099", "15-08-2025"])
def test_normalize_date_is_idempotent(value):
    once = normalize_date(value)
    assert once == value
    assert normalize_date(once) == once


@pytest.mark.parametrize("raw", ["31-04-2025", "29-02-2023", "30 de febrero de 2025", "15 de agostoo de 2025", "not a date", ""])
def test_normalize_date_rejects_invalid(raw):
    assert normalize_date(raw) is None


# --- Text extraction ---


def test_extract_date_from_text_rejects_calendar_invalid_and_keeps_searching():
    text = "Despacho 31-04-2025, reprogramado para 02-05-2025"
    assert extract_date_from_text(text) == "02-05-2025"


def test_extract_date_from_text_leap_years():
    assert extract_date_from_text("Entrega 29-02-2024") == "29-02-2024"
    assert extract_date_from_text("Entrega 29-02-2023") is None


def test_extract_date_from_text_pattern_order_beats_text_order():
    # dd-mm-yyyy is tried before dd/mm/yyyy even when it appears later.
    assert extract_date_from_text("Retiro 01/09/2025 o entrega 03-09-2025") == "03-09-2025"


def test_extract_date_from_text_spanish_and_english_month_names():
    assert extract_date_from_text("Llega el 7 de marzo de 2026") == "07-03-2026"
    assert extract_date_from_text("Arrives Mar 7, 2026") == "07-03-2026"
    assert extract_date_from_text("Llega el 7 de marzo") is None


def test_extract_date_from_text_never_returns_invalid_dates():
    samples = [
        "31-04-2025 30-02-2024 15/13/2025",
        "Entrega 31 de abril de 2025",
        "Delivery February 30, 2024",
    ]
    for sample in samples:
        found = extract_date_from_text(sample)
        assert found is None or is_valid_commitment_date(found)


def test_extract_date_near_keyword_respects_window():
    near = "Fecha de entrega: 15-08-2025"
    far = "Fecha de entrega " + "x" * 120 + " 15-08-2025"
    assert extract_date_near_keyword(near) == "15-08-2025"
    assert extract_date_near_keyword(far) is None


def test_extract_date_near_keyword_ignores_unanchored_dates():
    text = "Oferta válida hasta 01-09-2025. Envío estimado: 20-08-2025"
    assert extract_date_near_keyword(text) == "20-08-2025"


# --- Page strategies ---


@pytest.mark.asyncio
async def test_extract_commitment_date_selector_strategy_first():
    page = FakePage(body="Fecha de entrega: 20-09-2025")
    page.add(".delivery-date", FakeElement(text="Llega el 15/08/2025"))
    assert await extract_commitment_date(page) == "15-08-2025"


@pytest.mark.asyncio
async def test_extract_commitment_date_skips_hidden_date_elements():
    page = FakePage(body="Tu compra: entrega el 20-09-2025")
    page.add(".delivery-date", FakeElement(text="15-08-2025", visible=False))
    assert await extract_commitment_date(page) == "20-09-2025"


@pytest.mark.asyncio
async def test_extract_commitment_date_falls_back_to_page_text():
    page = FakePage(body="Resumen\nFecha de entrega: 15-08-2025\nTotal $19.990")
    assert await extract_commitment_date(page) == "15-08-2025"


@pytest.mark.asyncio
async def test_extract_commitment_date_section_scan_last():
    page = FakePage(body="Resumen de tu compra")
    section = FakeElement(
        text="",
        children=[FakeElement(text="Producto"), FakeElement(text="Llega 3 de octubre de 2025")],
    )
    page.add(".shipping-info", section)
    assert await extract_commitment_date(page) == "03-10-2025"


@pytest.mark.asyncio
async def test_extract_commitment_date_none_when_nothing_valid():
    page = FakePage(body="Entrega: 31-04-2025")
    page.add(".delivery-date", FakeElement(text="Pronto"))
    assert await extract_commitment_date(page) is None


@pytest.mark.asyncio
async def test_extract_commitment_date_reads_section_own_text():
    page = FakePage(body="Resumen de tu compra")
    page.add(".shipping-info", FakeElement(text="Llega el 3 de octubre de 2025"))
    assert await extract_commitment_date(page) == "03-10-2025"


@pytest.mark.asyncio
async def test_extract_commitment_date_joins_inline_children_of_section():
    # <div class="shipping-info">Llega el <b>3 de octubre</b> de 2025</div>
    page = FakePage(body="Resumen de tu compra")
    section = FakeElement(
        text="Llega el 3 de octubre de 2025",
        children=[FakeElement(text="3 de octubre")],
    )
    page.add(".shipping-info", section)
    assert await extract_commitment_date(page) == "03-10-2025"


@pytest.mark.parametrize(
    "text",
    ["Entrega➔15-08-2025", "Llega★15/08/2025", "Fecha:«15 de agosto de 2025»"],
)
def test_extract_date_from_text_symbol_glued_to_date(text):
    assert extract_date_from_text(text) == "15-08-2025"
