"""
Storage primitives for the consolidation engine
Every read filters out tombstoned rows; every write happens on the session
handed in, so the caller owns the transaction.
"""

from typing import Collection, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.contact import Contact, LinkPrecedence
from .cluster import ContactNode, Primary, Secondary
from .errors import ClusterIntegrityError


def to_node(contact: Contact) -> ContactNode:
    """Snapshot an ORM row as a tagged primary/secondary node"""
    if contact.is_primary():
        link = Primary()
    elif contact.linked_id is not None:
        link = Secondary(owner_id=contact.linked_id)
    else:
        raise ClusterIntegrityError(f"Secondary contact {contact.id} has no linked contact")

    return ContactNode(
        id=contact.id,
        email=contact.email,
        phone_number=contact.phone_number,
        created_at=contact.created_at,
        link=link,
    )


class ContactStore:
    """Contact queries and linkage updates bound to one session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_matching(
        self,
        email: Optional[str],
        phone_number: Optional[str]
    ) -> List[Contact]:
        """
        Active contacts whose email or phone number equals the input
        A missing identifier adds no condition, so NULL never matches NULL
        """
        conditions = []
        if email:
            conditions.append(Contact.email == email)
        if phone_number:
            conditions.append(Contact.phone_number == phone_number)

        if not conditions:
            return []

        query = (
            select(Contact)
            .where(or_(*conditions), Contact.deleted_at.is_(None))
            .order_by(Contact.created_at, Contact.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def fetch_cluster(self, primary_ids: Collection[int], lock: bool = False) -> List[Contact]:
        """
        Every active contact that is one of the given primaries or links to one

        With lock=True the rows are selected FOR UPDATE, in (created_at, id)
        order, and held until the transaction ends.
        """
        if not primary_ids:
            return []

        ids = sorted(primary_ids)
        query = (
            select(Contact)
            .where(
                or_(Contact.id.in_(ids), Contact.linked_id.in_(ids)),
                Contact.deleted_at.is_(None)
            )
            .order_by(Contact.created_at, Contact.id)
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update()

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create_contact(
        self,
        email: Optional[str],
        phone_number: Optional[str],
        primary_id: Optional[int] = None
    ) -> Contact:
        """
        Insert a contact; it is secondary when primary_id is given
        The database assigns the id and both timestamps; they are read back
        after the flush
        """
        contact = Contact(
            email=email,
            phone_number=phone_number,
            linked_id=primary_id,
            link_precedence=(
                LinkPrecedence.SECONDARY.value if primary_id is not None
                else LinkPrecedence.PRIMARY.value
            ),
        )

        self.session.add(contact)
        await self.session.flush()
        await self.session.refresh(contact)
        return contact

    async def demote(self, contact_id: int, new_primary_id: int) -> None:
        """Turn a primary into a secondary of new_primary_id"""
        await self.session.execute(
            update(Contact)
            .where(Contact.id == contact_id)
            .values(
                link_precedence=LinkPrecedence.SECONDARY.value,
                linked_id=new_primary_id,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )

    async def reparent_secondaries(self, old_primary_id: int, new_primary_id: int) -> int:
        """Point every active secondary of old_primary_id at new_primary_id"""
        result = await self.session.execute(
            update(Contact)
            .where(Contact.linked_id == old_primary_id, Contact.deleted_at.is_(None))
            .values(linked_id=new_primary_id, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
