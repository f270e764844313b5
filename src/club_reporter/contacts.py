"""club_reporter.contacts

Parser and reconciler for the headerless TidyHQ contacts export.

Each export row is one (member, membership level) pair, so a member holding
several levels appears on several rows.  Rows are folded into one Contact
per member number:

  - race / volunteer / active follow the last Active row for the member;
    non-Active rows never unset them.
  - first aid / coach / official credentials are first-non-expired-wins:
    a later row only replaces a credential that is absent or expired.
  - date_of_birth comes from the first row seen for the member.
  - every row is appended to member_levels in file order.
"""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path

from club_reporter.normalize import is_expired, trim
from club_reporter.shared import ContactsParseError, InputNotFoundError

log = logging.getLogger(__name__)

ACTIVE_STATUS = "Active"

_ADD_ON_RE = re.compile(r"Add-On", re.IGNORECASE)
_CA_RE = re.compile(r"^CA")
_NON_RIDING_RE = re.compile(r"Non-Riding")


# ---------------------------------------------------------------------------
# Row record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContactRow:
    name: str
    member_no: str
    email: str
    phone: str
    date_of_birth: str
    first_aid_expiry: str
    first_aid_certificate: str
    hold_accreditation: str
    coaching_level: str
    coaching_expiry: str
    official_level: str
    official_expiry: str
    membership_level: str
    status: str


ROW_COLUMNS = tuple(f.name for f in fields(ContactRow))


def parse_contact_row(values: list[str], line_num: int) -> ContactRow:
    """Validate one raw CSV row and return it as a ContactRow.

    Raises ContactsParseError on a wrong column count or blank member number.
    """
    if len(values) != len(ROW_COLUMNS):
        raise ContactsParseError(
            f"expected {len(ROW_COLUMNS)} columns, found {len(values)}",
            line_num,
        )
    row = ContactRow(*values)
    if trim(row.member_no) is None:
        raise ContactsParseError("missing member number", line_num)
    return row


def read_contact_rows(path: Path) -> list[ContactRow]:
    """Read the headerless export at path into ContactRows, in file order.

    A missing file raises InputNotFoundError before any parsing; malformed
    CSV or non-UTF-8 bytes raise ContactsParseError.  Blank lines are skipped.
    """
    if not path.exists():
        raise InputNotFoundError(f"{path} not found, cannot parse contacts")

    rows: list[ContactRow] = []
    with path.open(encoding="utf-8-sig", newline="") as fh:
        reader = csv.reader(fh, strict=True)
        try:
            for values in reader:
                if not values or all(not v.strip() for v in values):
                    log.debug("Skipping blank line %d", reader.line_num)
                    continue
                rows.append(parse_contact_row(values, reader.line_num))
        except csv.Error as exc:
            raise ContactsParseError(str(exc), reader.line_num) from exc
        except UnicodeDecodeError as exc:
            raise ContactsParseError(f"invalid UTF-8: {exc.reason}") from exc
    return rows


# ---------------------------------------------------------------------------
# Contact model
# ---------------------------------------------------------------------------

@dataclass
class Credential:
    type: str | None
    expiry: str
    expired: bool


@dataclass
class MemberLevel:
    name: str
    status: str


@dataclass
class Contact:
    name: str
    member_no: str
    date_of_birth: str | None
    active: bool = False
    race: str | bool = False
    volunteer: str | bool = False
    first_aid: Credential | None = None
    coach: Credential | None = None
    official: Credential | None = None
    member_levels: list[MemberLevel] = field(default_factory=list)


ContactMap = dict[str, Contact]


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def _needs_credential(existing: Credential | None) -> bool:
    return existing is None or existing.expired


def _apply_membership(contact: Contact, level: str) -> None:
    non_riding = bool(_NON_RIDING_RE.search(level))
    if not (_ADD_ON_RE.search(level) or _CA_RE.search(level) or non_riding):
        contact.race = level
    if non_riding:
        contact.volunteer = level
    contact.active = True


def reconcile_contacts(
    rows: list[ContactRow],
    as_of: datetime | None = None,
) -> ContactMap:
    """Fold rows into one Contact per member number.

    Expiry flags are evaluated against as_of (default: now).
    """
    as_of = as_of or datetime.now()
    contacts: ContactMap = {}

    for row in rows:
        contact = contacts.get(row.member_no)
        if contact is None:
            contact = Contact(
                name=row.name,
                member_no=row.member_no,
                date_of_birth=trim(row.date_of_birth),
            )
            contacts[row.member_no] = contact

        if row.status == ACTIVE_STATUS:
            _apply_membership(contact, row.membership_level)

        if row.first_aid_expiry != "" and _needs_credential(contact.first_aid):
            contact.first_aid = Credential(
                type=None,
                expiry=row.first_aid_expiry,
                expired=is_expired(row.first_aid_expiry, as_of),
            )

        if row.coaching_level != "" and _needs_credential(contact.coach):
            contact.coach = Credential(
                type=row.coaching_level,
                expiry=row.coaching_expiry,
                expired=is_expired(row.coaching_expiry, as_of),
            )

        if row.official_level != "" and _needs_credential(contact.official):
            contact.official = Credential(
                type=row.official_level,
                expiry=row.official_expiry,
                expired=is_expired(row.official_expiry, as_of),
            )

        contact.member_levels.append(
            MemberLevel(name=row.membership_level, status=row.status)
        )

    return contacts


def parse_contacts_csv(path: Path, as_of: datetime | None = None) -> ContactMap:
    """Read and reconcile the export at path."""
    return reconcile_contacts(read_contact_rows(path), as_of=as_of)
