"""club_reporter.aggregate

Pure aggregations over a reconciled ContactMap.  None of these mutate the
map or raise; each call returns a fresh structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Generic, Literal, TypeVar

from club_reporter.contacts import ACTIVE_STATUS, Contact, ContactMap, Credential
from club_reporter.normalize import expired_in_year, parse_year, yes_no

T = TypeVar("T")

CredentialKind = Literal["first_aid", "coach", "official"]

# Sprockets graduate in the season they turn this age.
SPROCKET_GRADUATION_AGE = 8


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

@dataclass
class ContactTotals:
    total_active: int = 0
    total_expired: int = 0
    total_riding: int = 0
    total_volunteers: int = 0
    total_riding_volunteers: int = 0
    total_first_aid: int = 0
    total_expired_first_aid: int = 0
    total_coaches: int = 0
    total_expired_coaches: int = 0
    total_officials: int = 0
    total_officials_expired: int = 0


def _credential_lapsed(
    contact: Contact,
    credential: Credential,
    reporting_year: int,
    as_of: datetime,
) -> bool:
    return not contact.active or expired_in_year(credential.expiry, reporting_year, as_of)


def get_totals(
    contacts: ContactMap,
    reporting_year: int,
    as_of: datetime | None = None,
) -> ContactTotals:
    """Count members and credential holders.

    A member counts as active when they hold a race or volunteer level.
    A credential is counted as expired when its holder is inactive, or when
    it lapsed before as_of within the reporting year.
    """
    as_of = as_of or datetime.now()
    res = ContactTotals()

    for contact in contacts.values():
        if contact.race or contact.volunteer:
            res.total_active += 1
        else:
            res.total_expired += 1

        if contact.race and contact.volunteer:
            res.total_riding_volunteers += 1
        elif contact.race:
            res.total_riding += 1
        elif contact.volunteer:
            res.total_volunteers += 1

        if contact.first_aid:
            if _credential_lapsed(contact, contact.first_aid, reporting_year, as_of):
                res.total_expired_first_aid += 1
            else:
                res.total_first_aid += 1

        if contact.coach:
            if _credential_lapsed(contact, contact.coach, reporting_year, as_of):
                res.total_expired_coaches += 1
            else:
                res.total_coaches += 1

        if contact.official:
            if _credential_lapsed(contact, contact.official, reporting_year, as_of):
                res.total_officials_expired += 1
            else:
                res.total_officials += 1

    return res


# ---------------------------------------------------------------------------
# Membership level breakdown
# ---------------------------------------------------------------------------

def get_member_level_breakdown(contacts: ContactMap) -> dict[str, int]:
    """Count Active rows per membership level name.

    Counts rows, not members: a member listed twice on the same active level
    contributes two.
    """
    res: dict[str, int] = {}
    for contact in contacts.values():
        for level in contact.member_levels:
            if level.status == ACTIVE_STATUS:
                res[level.name] = res.get(level.name, 0) + 1
    return res


# ---------------------------------------------------------------------------
# Sprocket graduates
# ---------------------------------------------------------------------------

def get_sprocket_graduates(contacts: ContactMap, reporting_year: int) -> list[Contact]:
    """Active members turning SPROCKET_GRADUATION_AGE in the reporting cycle."""
    birth_year = reporting_year + 1 - SPROCKET_GRADUATION_AGE
    return [
        contact
        for contact in contacts.values()
        if contact.active
        and contact.date_of_birth
        and parse_year(contact.date_of_birth) == birth_year
    ]


# ---------------------------------------------------------------------------
# Current / expired credential holders
# ---------------------------------------------------------------------------

@dataclass
class CurrentExpired(Generic[T]):
    current: list[T] = field(default_factory=list)
    expired: list[T] = field(default_factory=list)


@dataclass(frozen=True)
class FirstAider:
    name: str
    expiry: str
    licensed: str


@dataclass(frozen=True)
class Coach:
    name: str
    type: str
    expiry: str
    licensed: str


@dataclass(frozen=True)
class Official:
    name: str
    type: str
    expiry: str
    licensed: str


def build_current_expired(
    contacts: ContactMap,
    kind: CredentialKind,
    transformer: Callable[[Contact], T],
) -> CurrentExpired[T]:
    """Bucket holders of a credential kind into current and expired.

    Inactive holders always land in expired.  Contacts without the
    credential are left out.
    """
    res: CurrentExpired[T] = CurrentExpired()
    for contact in contacts.values():
        credential: Credential | None = getattr(contact, kind)
        if credential is None:
            continue
        item = transformer(contact)
        if not contact.active or credential.expired:
            res.expired.append(item)
        else:
            res.current.append(item)
    return res


def get_club_first_aiders(contacts: ContactMap) -> CurrentExpired[FirstAider]:
    return build_current_expired(
        contacts,
        "first_aid",
        lambda c: FirstAider(
            name=c.name,
            expiry=c.first_aid.expiry if c.first_aid else "",
            licensed=yes_no(c.active),
        ),
    )


def get_club_coaches(contacts: ContactMap) -> CurrentExpired[Coach]:
    return build_current_expired(
        contacts,
        "coach",
        lambda c: Coach(
            name=c.name,
            type=(c.coach.type or "") if c.coach else "",
            expiry=c.coach.expiry if c.coach else "",
            licensed=yes_no(c.active),
        ),
    )


def get_club_officials(contacts: ContactMap) -> CurrentExpired[Official]:
    return build_current_expired(
        contacts,
        "official",
        lambda c: Official(
            name=c.name,
            type=(c.official.type or "") if c.official else "",
            expiry=c.official.expiry if c.official else "",
            licensed=yes_no(c.active),
        ),
    )
