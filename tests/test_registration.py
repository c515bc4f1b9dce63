"""
tests/test_registration.py — Registration Form Lookup Tests
============================================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import httpx

from kuu.services.registration_service import (
    RegistrationLookup,
    RegistrationRow,
    find_registration,
    parse_registration_csv,
)

CSV = (
    "Discord Username,Name,Student ID,Proof of Payment,Year,Favourite Husbando/Waifu\n"
    "kuuchan,Kuu,S1,https://drive/pay1,1,Satania\n"
    "\n"
    "nopay,No Pay,S2,,2,\n"
    '"comma, user",Someone,S3,https://drive/pay3,3,"Irys, obviously"\n'
)


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


class TestParsing:

    def test_header_and_blank_rows_dropped(self):
        rows = parse_registration_csv(CSV)
        assert [row[0] for row in rows] == ["kuuchan", "nopay", "comma, user"]

    def test_empty_text(self):
        assert parse_registration_csv("") == []

    def test_find_full_row(self):
        rows = parse_registration_csv(CSV)
        assert find_registration(rows, "kuuchan") == RegistrationRow(
            username="kuuchan", payment_proof="https://drive/pay1", favourite="Satania"
        )

    def test_find_row_with_blank_cells(self):
        row = find_registration(parse_registration_csv(CSV), "nopay")
        assert row.payment_proof is None
        assert row.favourite is None

    def test_quoted_cells(self):
        row = find_registration(parse_registration_csv(CSV), "comma, user")
        assert row.favourite == "Irys, obviously"

    def test_username_match_is_exact(self):
        rows = parse_registration_csv(CSV)
        assert find_registration(rows, "KuuChan") is None
        assert find_registration(rows, "kuu") is None

    def test_short_row(self):
        assert find_registration([["solo"]], "solo") == RegistrationRow("solo", None, None)


class TestLookup:

    def _lookup(self, handler) -> tuple[RegistrationLookup, httpx.MockTransport]:
        lookup = RegistrationLookup("https://example.com/form.csv")
        transport = httpx.MockTransport(handler)
        return lookup, transport

    def test_disabled_without_url(self):
        lookup = RegistrationLookup(None)
        assert not lookup.enabled
        assert run_async(lookup.find("kuuchan")) is None

    def test_fetch_and_find(self):
        lookup, transport = self._lookup(lambda request: httpx.Response(200, text=CSV))
        with patch("httpx.AsyncHTTPTransport", return_value=transport):
            row = run_async(lookup.find("kuuchan"))
        assert row.favourite == "Satania"

    def test_http_error_means_not_found(self):
        lookup, transport = self._lookup(lambda request: httpx.Response(500))
        with patch("httpx.AsyncHTTPTransport", return_value=transport):
            assert run_async(lookup.fetch_rows()) == []
            assert run_async(lookup.find("kuuchan")) is None
