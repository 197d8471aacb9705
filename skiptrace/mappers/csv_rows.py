import csv
import io

from skiptrace.exceptions.custom import CsvFormatError
from skiptrace.mappers.row_updates import RowUpdateMap
from skiptrace.schemas.owner import OwnerDetails, RowFields

COLUMN_MAPPINGS: dict[str, int] = {
    "address": 0,
    "unitNumber": 1,
    "city": 2,
    "state": 3,
    "zip": 4,
    "county": 5,
    "apn": 6,
    "ownerOccupied": 7,
    "ownerOneFirstName": 8,
    "ownerOneLastName": 9,
    "ownerTwoFirstName": 10,
    "ownerTwoLastName": 11,
    "mailingCareOf": 12,
    "mailingAddress": 13,
    "mailingUnitNumber": 14,
    "mailingCity": 15,
    "mailingState": 16,
    "mailingZip": 17,
    "mailingCounty": 18,
    "doNotMail": 19,
    "propertyType": 20,
    "bedrooms": 21,
    "totalBathrooms": 22,
    "buildingSqft": 23,
    "lotSizeSqft": 24,
    "effectiveYearBuilt": 25,
    "totalAssessedValue": 26,
    "lastSaleDate": 27,
    "lastSaleAmount": 28,
    "totalOpenLoans": 29,
    "estRemainingLoan": 30,
    "estValue": 31,
    "estLTV": 32,
    "estEquity": 33,
    "mlsStatus": 34,
    "mlsDate": 35,
    "mlsAmount": 36,
    "lienAmount": 37,
    "marketingLists": 38,
    "dateAddedToList": 39,
    "unused40": 40,
    "ownerMobile1": 41,
    "ownerMobile1Type": 42,
    "ownerMobile2": 43,
    "ownerMobile2Type": 44,
    "ownerMobile3": 45,
    "ownerMobile3Type": 46,
    "ownerMobile4": 47,
    "ownerMobile4Type": 48,
    "ownerMobile5": 49,
    "ownerMobile5Type": 50,
    "ownerMobile6": 51,
    "ownerMobile6Type": 52,
    "ownerMobile7": 53,
    "ownerMobile7Type": 54,
    "ownerLandline1": 55,
    "ownerLandline2": 56,
    "ownerLandline3": 57,
    "ownerLandline4": 58,
    "ownerLandline5": 59,
    "ownerLandline6": 60,
    "ownerVoip1": 61,
    "ownerVoip2": 62,
    "ownerVoip3": 63,
    "ownerVoip4": 64,
    "ownerPager1": 65,
    "ownerSpecial1": 66,
    "ownerUnknown1": 67,
    "emailAll": 98,
    "email1": 99,
    "email2": 100,
    "email3": 101,
}

# Five relative blocks of six columns each (name + five contacts), BQ..CT.
# Slots are zero-based to line up with the relative crawler's indices.
_RELATIVE_START = 68
for _slot in range(5):
    _base = _RELATIVE_START + _slot * 6
    COLUMN_MAPPINGS[f"relative{_slot}Name"] = _base
    for _contact in range(1, 6):
        COLUMN_MAPPINGS[f"relative{_slot}Contact{_contact}"] = _base + _contact


def column_index_of(field: str) -> int | None:
    return COLUMN_MAPPINGS.get(field)


def parse_csv(content: str) -> list[list[str]]:
    """Rows of the upload with blank lines dropped.

    Row indices count non-blank rows only, and ``render_csv`` writes the file
    back without the blank lines.
    """
    try:
        return [row for row in csv.reader(io.StringIO(content)) if row]
    except csv.Error as exc:
        raise CsvFormatError(f"Invalid CSV: {exc}") from exc


def render_csv(rows: list[list[str]]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerows(rows)
    return buf.getvalue()


def _cell(row: list[str], field: str) -> str:
    index = COLUMN_MAPPINGS[field]
    return row[index].strip() if index < len(row) and row[index] else ""


def row_fields_from(row: list[str], index: int) -> RowFields:
    mailing_address = _cell(row, "mailingAddress")
    return RowFields(
        index=index,
        address=_cell(row, "address"),
        city=_cell(row, "city"),
        state=_cell(row, "state"),
        zip=_cell(row, "zip"),
        mailing_address=mailing_address,
        mailing_city=_cell(row, "mailingCity") if mailing_address else "",
        mailing_state=_cell(row, "mailingState") if mailing_address else "",
    )


def owner_details_from(row: list[str]) -> OwnerDetails:
    return OwnerDetails(
        owner_one_first_name=_cell(row, "ownerOneFirstName"),
        owner_one_last_name=_cell(row, "ownerOneLastName"),
        owner_two_first_name=_cell(row, "ownerTwoFirstName"),
        owner_two_last_name=_cell(row, "ownerTwoLastName"),
    )


def apply_updates(row: list[str], updates: RowUpdateMap) -> list[str]:
    """Write mapped fields into a copy of ``row``; unmapped fields are dropped."""
    updated = list(row)
    for field, value in updates.items():
        index = column_index_of(field)
        if index is None:
            continue
        if index >= len(updated):
            updated.extend([""] * (index + 1 - len(updated)))
        updated[index] = value
    return updated
