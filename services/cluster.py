"""
Pure consolidation steps over an in-memory cluster snapshot

A cluster is a two-level forest: one primary plus the secondaries that point
straight at it. Nothing here touches the database; the identity service loads
snapshots, calls these functions and applies the resulting writes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Set, Union

from schemas.identify import ContactResponse
from .errors import ClusterIntegrityError


@dataclass(frozen=True)
class Primary:
    pass


@dataclass(frozen=True)
class Secondary:
    owner_id: int


Link = Union[Primary, Secondary]


@dataclass(frozen=True)
class ContactNode:
    """Read-only snapshot of one stored contact"""
    id: int
    email: Optional[str]
    phone_number: Optional[str]
    created_at: datetime
    link: Link = field(default_factory=Primary)

    @property
    def is_primary(self) -> bool:
        return isinstance(self.link, Primary)

    @property
    def governing_id(self) -> int:
        """ID of the primary that owns this contact (itself when primary)"""
        if isinstance(self.link, Secondary):
            return self.link.owner_id
        return self.id

    @property
    def seniority(self):
        return (self.created_at, self.id)


@dataclass(frozen=True)
class MergePlan:
    true_primary_id: int
    loser_ids: List[int]

    @property
    def is_noop(self) -> bool:
        return not self.loser_ids


def normalize_identifier(value: Optional[str]) -> Optional[str]:
    """Trim an identifier; blank strings become None"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def governing_primary_ids(nodes: Iterable[ContactNode]) -> Set[int]:
    return {node.governing_id for node in nodes}


def check_cluster(nodes: Sequence[ContactNode]) -> None:
    """
    Verify the one-hop invariant for a fetched cluster

    Every secondary must point at a primary that is present in the same
    snapshot. Anything else means the stored linkage is corrupt.
    """
    by_id = {node.id: node for node in nodes}
    if not any(node.is_primary for node in nodes):
        raise ClusterIntegrityError(
            f"Cluster of contacts {sorted(by_id)} has no primary contact"
        )

    for node in nodes:
        if node.is_primary:
            continue
        owner = by_id.get(node.governing_id)
        if owner is None:
            raise ClusterIntegrityError(
                f"Contact {node.id} links to missing or deleted contact {node.governing_id}"
            )
        if not owner.is_primary:
            raise ClusterIntegrityError(
                f"Contact {node.id} links to contact {owner.id}, which is itself secondary"
            )


def plan_merge(nodes: Sequence[ContactNode]) -> MergePlan:
    """
    Pick the true primary of a possibly bridged cluster

    The most senior primary by (created_at, id) wins; every other primary is a
    loser to be demoted, in seniority order.
    """
    primaries = sorted((node for node in nodes if node.is_primary), key=lambda n: n.seniority)
    if not primaries:
        raise ClusterIntegrityError("Cannot resolve a cluster without a primary contact")

    return MergePlan(
        true_primary_id=primaries[0].id,
        loser_ids=[node.id for node in primaries[1:]],
    )


def is_novel(nodes: Iterable[ContactNode], email: Optional[str], phone_number: Optional[str]) -> bool:
    """True when the input carries an email or phone not yet seen in the cluster"""
    known_emails = set()
    known_phones = set()
    for node in nodes:
        if node.email:
            known_emails.add(node.email)
        if node.phone_number:
            known_phones.add(node.phone_number)

    has_new_email = bool(email) and email not in known_emails
    has_new_phone = bool(phone_number) and phone_number not in known_phones
    return has_new_email or has_new_phone


def project(nodes: Sequence[ContactNode], primary_id: int) -> ContactResponse:
    """
    Build the consolidated view of a cluster

    The primary's own values lead; the rest follow in cluster order with nulls
    and repeats dropped.
    """
    primary = next((node for node in nodes if node.id == primary_id), None)
    if primary is None:
        raise ClusterIntegrityError(f"Primary contact {primary_id} is not part of the cluster")

    emails: List[str] = []
    phone_numbers: List[str] = []
    secondary_ids: List[int] = []

    if primary.email:
        emails.append(primary.email)
    if primary.phone_number:
        phone_numbers.append(primary.phone_number)

    for node in nodes:
        if node.id == primary_id:
            continue
        secondary_ids.append(node.id)
        if node.email and node.email not in emails:
            emails.append(node.email)
        if node.phone_number and node.phone_number not in phone_numbers:
            phone_numbers.append(node.phone_number)

    return ContactResponse(
        primaryContactId=primary_id,
        emails=emails,
        phoneNumbers=phone_numbers,
        secondaryContactIds=secondary_ids,
    )
