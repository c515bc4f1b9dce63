"""
kuu.services.registration_service — Registration Form Lookup
=============================================================

New members fill in a registration form before joining.  The form's
responses are published as CSV (e.g. a Google Sheets "publish to web"
link restricted to the username … favourite-character columns).  When a
member posts in the intro channel, the committee embed is enriched with
that member's row.

Expected column layout (first row is a header)::

    username, …, …, proof of payment, …, favourite husbando/waifu

Only the first, fourth and last columns are read.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

PAYMENT_PROOF_COLUMN = 3


@dataclass(frozen=True, slots=True)
class RegistrationRow:
    username: str
    payment_proof: str | None
    favourite: str | None


def parse_registration_csv(text: str) -> list[list[str]]:
    """Split CSV *text* into rows, dropping the header and blank lines."""
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    return rows[1:]


def find_registration(rows: list[list[str]], username: str) -> RegistrationRow | None:
    """First row whose first column equals *username* exactly."""
    for row in rows:
        if not row or row[0].strip() != username:
            continue
        payment = row[PAYMENT_PROOF_COLUMN].strip() if len(row) > PAYMENT_PROOF_COLUMN else ""
        favourite = row[-1].strip() if len(row) > 1 else ""
        return RegistrationRow(
            username=username,
            payment_proof=payment or None,
            favourite=favourite or None,
        )
    return None


class RegistrationLookup:
    """Fetches the published registration CSV on demand.

    Parameters
    ----------
    csv_url:
        Published CSV URL.  ``None`` disables the lookup (every member is
        reported for a manual check).
    """

    def __init__(self, csv_url: str | None, timeout: float = 10.0) -> None:
        self.csv_url = csv_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.csv_url)

    async def fetch_rows(self) -> list[list[str]]:
        """Download and parse the CSV.  Returns ``[]`` on any HTTP failure."""
        if not self.csv_url:
            return []

        transport = httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=transport) as client:
                resp = await client.get(self.csv_url, follow_redirects=True)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Something went wrong fetching registration responses: %s", exc)
            return []

        rows = parse_registration_csv(resp.text)
        if not rows:
            logger.warning("No registration responses found.")
        return rows

    async def find(self, username: str) -> RegistrationRow | None:
        return find_registration(await self.fetch_rows(), username)
