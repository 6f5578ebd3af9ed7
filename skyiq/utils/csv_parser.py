import csv
from typing import List, Optional

from skyiq.models.schemas import Contact

HEADER_HINTS = ("phone", "name", "company")
MIN_PHONE_LENGTH = 10


def _clean(value: str) -> str:
    return (value or "").strip().strip("\"'").strip()


def _looks_like_header(line: str) -> bool:
    lowered = line.lower()
    return any(hint in lowered for hint in HEADER_HINTS)


def _column_indexes(headers: List[str]):
    phone = first = last = company = None

    for index, header in enumerate(headers):
        header = _clean(header).lower()
        if "phone" in header:
            if phone is None:
                phone = index
        elif "first" in header:
            first = index
        elif "last" in header:
            last = index
        elif "company" in header:
            company = index
        elif "name" in header and first is None:
            first = index

    return phone, first, last, company


def _field(row: List[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ''
    return _clean(row[index])


def parse_contacts_csv(content: str) -> List[Contact]:
    """
    Parse an uploaded contact list.

    A first line mentioning phone/name/company is treated as a header and
    columns are matched by partial, case-insensitive header names. Without
    a header every non-empty line is a bare phone number. Phone values
    shorter than 10 characters are dropped.
    """
    lines = [line for line in (content or "").splitlines() if line.strip()]
    if not lines:
        return []

    contacts = []

    if not _looks_like_header(lines[0]):
        for line in lines:
            phone = _clean(line)
            if len(phone) >= MIN_PHONE_LENGTH:
                contacts.append(Contact(phone_number=phone))
        return contacts

    rows = list(csv.reader(lines))
    phone_idx, first_idx, last_idx, company_idx = _column_indexes(rows[0])
    if phone_idx is None:
        phone_idx = 0

    for row in rows[1:]:
        phone = _field(row, phone_idx)
        if len(phone) < MIN_PHONE_LENGTH:
            continue
        contacts.append(Contact(
            phone_number=phone,
            first_name=_field(row, first_idx),
            last_name=_field(row, last_idx),
            company=_field(row, company_idx),
        ))

    return contacts
