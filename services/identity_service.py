"""
Identity Service - orchestration of the consolidation engine
Runs lookup, cluster expansion, collision resolution, novelty detection and
projection for one request inside a single database transaction
"""

import logging
from typing import Collection, List, Optional

from database import DatabaseManager, db_manager
from schemas.identify import ContactResponse, IdentifyRequest, IdentifyResponse
from .cluster import (
    ContactNode,
    MergePlan,
    check_cluster,
    governing_primary_ids,
    is_novel,
    normalize_identifier,
    plan_merge,
    project,
)
from .contact_store import ContactStore, to_node
from .errors import InvalidIdentifyRequest

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Core service for identity reconciliation
    Resolves an email/phone pair to one consolidated customer
    """

    def __init__(self, database: Optional[DatabaseManager] = None):
        self.db_manager = database or db_manager

    async def identify_contact(self, request: IdentifyRequest) -> IdentifyResponse:
        """Wrap identify() for the HTTP layer"""
        contact = await self.identify(request.email, request.phoneNumber)
        return IdentifyResponse(contact=contact)

    async def identify(self, email: Optional[str], phone_number: Optional[str]) -> ContactResponse:
        """
        Main orchestration method for identity reconciliation

        Algorithm:
        1. Find active contacts matching email or phone
        2. No matches -> create a new primary and return it
        3. Expand the matches to their full clusters (rows locked)
        4. More than one primary -> keep the oldest, demote the rest
        5. Email or phone unseen in the cluster -> add a secondary
        6. Project the cluster into the consolidated response

        Everything commits together or not at all.
        """
        email = normalize_identifier(email)
        phone_number = normalize_identifier(phone_number)
        if not email and not phone_number:
            raise InvalidIdentifyRequest("At least one of email or phoneNumber must be provided")

        async with self.db_manager.transaction() as session:
            store = ContactStore(session)

            matched = await store.find_matching(email, phone_number)
            if not matched:
                contact = await store.create_contact(email, phone_number)
                logger.info(f"Created primary contact {contact.id}")
                return project([to_node(contact)], contact.id)

            cluster = await self._expand_cluster(
                store, governing_primary_ids(to_node(c) for c in matched)
            )

            plan = plan_merge(cluster)
            if not plan.is_noop:
                await self._merge(store, plan)
                cluster = await self._expand_cluster(store, {plan.true_primary_id})

            if is_novel(cluster, email, phone_number):
                contact = await store.create_contact(
                    email, phone_number, primary_id=plan.true_primary_id
                )
                logger.info(
                    f"Created secondary contact {contact.id} under primary {plan.true_primary_id}"
                )
                cluster.append(to_node(contact))

            return project(cluster, plan.true_primary_id)

    async def _expand_cluster(self, store: ContactStore, primary_ids: Collection[int]) -> List[ContactNode]:
        """
        Load and lock every contact governed by the given primaries

        A primary demoted by a concurrent merge while we waited for its lock
        now points elsewhere; follow it and lock again until no new primary
        turns up.
        """
        primary_ids = set(primary_ids)
        while True:
            cluster = [to_node(c) for c in await store.fetch_cluster(primary_ids, lock=True)]
            reached = governing_primary_ids(cluster)
            if reached <= primary_ids:
                break
            primary_ids |= reached

        check_cluster(cluster)
        return cluster

    async def _merge(self, store: ContactStore, plan: MergePlan) -> None:
        """Fold every losing primary and its secondaries into the true primary"""
        for loser_id in plan.loser_ids:
            moved = await store.reparent_secondaries(loser_id, plan.true_primary_id)
            await store.demote(loser_id, plan.true_primary_id)
            logger.info(
                f"Merged primary {loser_id} into {plan.true_primary_id} "
                f"({moved} secondaries re-linked)"
            )


# Global service instance
identity_service = IdentityService()
