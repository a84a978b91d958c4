"""Mapping of NetSuite vendor records and CSV rows to author rows."""

import re
from typing import Dict, Optional, Tuple

from .models import utc_now_iso

DEFAULT_COUNTRY = "Nederland"

# Columns written by the sync. Self-service profile fields are not in this set,
# so an update never overwrites them.
AUTHOR_SYNC_FIELDS = (
    "netsuite_internal_id",
    "netsuite_vendor_id",
    "email",
    "first_name",
    "last_name",
    "voorletters",
    "phone",
    "street",
    "house_number",
    "postcode",
    "country",
    "bank_account",
    "bic",
    "bsn",
    "birth_date",
    "initials",
    "last_synced_at",
)

# Defaults applied only when an author is created.
AUTHOR_CREATE_DEFAULTS = {
    "is_admin": False,
    "is_active": True,
}

# canonical field -> source names, first non-empty wins
VENDOR_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "netsuite_internal_id": ("id", "internalId"),
    "netsuite_vendor_id": ("entityid", "entityId"),
    "email": ("email",),
    "first_name": ("firstname", "firstName"),
    "last_name": ("lastname", "lastName"),
    "voorletters": ("custentity_voorletters",),
    "phone": ("phone",),
    "bank_account": ("custentity_iban",),
    "bic": ("custentity_bic",),
    "bsn": ("custentity_bsn",),
    "birth_date": ("custentity_geboortedatum",),
}

VENDOR_ADDRESS_ALIASES: Dict[str, Tuple[str, ...]] = {
    "address_line": ("addr1", "addressLine1"),
    "postcode": ("zip", "postalCode"),
    "country": ("country",),
}

CSV_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "netsuite_internal_id": ("internal_id",),
    "netsuite_vendor_id": ("vendor_id", "entityid"),
    "email": ("email",),
    "first_name": ("first_name", "firstname"),
    "last_name": ("last_name", "lastname"),
    "voorletters": ("voorletters",),
    "phone": ("phone", "telefoon"),
    "street": ("street", "straat"),
    "house_number": ("house_number", "huisnummer"),
    "postcode": ("postcode", "zip"),
    "country": ("country", "land"),
    "bank_account": ("iban", "bank_account"),
    "bic": ("bic",),
    "bsn": ("bsn",),
    "birth_date": ("birth_date", "geboortedatum"),
}

# Shortest leading part, whitespace, then a part starting with a digit.
_ADDRESS_RE = re.compile(r"^(.+?)\s+(\d.*)$")


def _clean(value) -> Optional[str]:
    """Strip a scalar to a string; empty or missing becomes None."""
    if value is None:
        return None
    if isinstance(value, dict):
        # NetSuite references look like {"id": "NL", "refName": "Netherlands"}
        value = value.get("refName") or value.get("id")
        if value is None:
            return None
    text = str(value).strip()
    return text or None


def _to_int(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_fields(record: dict, aliases: Dict[str, Tuple[str, ...]]) -> dict:
    """Resolve every known source-name variant to one canonical field."""
    normalized = {}
    for field, names in aliases.items():
        value = None
        for name in names:
            value = _clean(record.get(name))
            if value is not None:
                break
        normalized[field] = value
    return normalized


def split_address(address_line: Optional[str]) -> Tuple[str, str]:
    """
    Best-effort split of "Herengracht 123" into ("Herengracht", "123") and of
    "2e Hugo de Grootstraat 5" into ("2e Hugo de Grootstraat", "5"): the house
    number starts at the first whitespace-separated part beginning with a digit.

    This is a heuristic, not an address parser: when the line does not look
    like <name> <number...>, the whole line is returned as the street and the
    house number is empty.
    """
    line = (address_line or "").strip()
    match = _ADDRESS_RE.match(line)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return line, ""


def compute_initials(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    """First letter of first name plus first letter of last name, upper-cased."""
    initials = (first_name or "")[:1] + (last_name or "")[:1]
    return initials.upper() or None


def _finish(author: dict, now: Optional[str]) -> dict:
    if author.get("email"):
        author["email"] = author["email"].lower()
    if not author.get("country"):
        author["country"] = DEFAULT_COUNTRY
    author["initials"] = compute_initials(author.get("first_name"), author.get("last_name"))
    author["last_synced_at"] = now or utc_now_iso()
    return {field: author.get(field) for field in AUTHOR_SYNC_FIELDS}


def map_vendor_to_author(vendor: dict, now: Optional[str] = None) -> dict:
    """
    Map one NetSuite vendor record to the author row shape.

    Missing optional fields become None. A missing email is not rejected here;
    the caller treats it as a per-record failure.
    """
    if not isinstance(vendor, dict):
        raise TypeError(f"Vendor record must be an object, got {type(vendor).__name__}")

    author = normalize_fields(vendor, VENDOR_FIELD_ALIASES)
    author["netsuite_internal_id"] = _to_int(author["netsuite_internal_id"])

    address = vendor.get("address")
    if not isinstance(address, dict):
        address = {}
    address_fields = normalize_fields(address, VENDOR_ADDRESS_ALIASES)
    street, house_number = split_address(address_fields["address_line"])
    author["street"] = street or None
    author["house_number"] = house_number or None
    author["postcode"] = address_fields["postcode"]
    author["country"] = address_fields["country"]

    return _finish(author, now)


def map_csv_row_to_author(row: dict, now: Optional[str] = None) -> dict:
    """Map one CSV row (lower-cased headers) to the author row shape."""
    if not isinstance(row, dict):
        raise TypeError(f"CSV row must be an object, got {type(row).__name__}")

    author = normalize_fields(row, CSV_FIELD_ALIASES)
    author["netsuite_internal_id"] = _to_int(author["netsuite_internal_id"])
    return _finish(author, now)
