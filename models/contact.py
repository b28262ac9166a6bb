"""
Contact model for the Contact Consolidation Service
This module defines the Contact database model for storing customer
contact fragments and the primary/secondary hierarchy that links them.
Rows are soft deleted through deleted_at and never physically removed.
"""

import enum
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel


class LinkPrecedence(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Contact(BaseModel):
    """
    Contact model representing one observed email/phone combination

    A contact is either 'primary' (the canonical record of a customer) or
    'secondary' (linked to exactly one primary). Secondaries never point
    at other secondaries.

    Database Table: contacts
    """
    __tablename__ = "contacts"

    phone_number: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        index=True,
        comment="Customer phone number exactly as received"
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Customer email address exactly as received"
    )

    linked_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("contacts.id"),
        nullable=True,
        index=True,
        comment="ID of the primary contact this secondary contact links to"
    )

    link_precedence: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=LinkPrecedence.PRIMARY.value,
        comment="Either 'primary' or 'secondary'"
    )

    __table_args__ = (
        CheckConstraint(
            "link_precedence IN ('primary', 'secondary')",
            name="valid_link_precedence"
        ),
        CheckConstraint(
            "(phone_number IS NOT NULL) OR (email IS NOT NULL)",
            name="contact_info_required"
        ),
        CheckConstraint(
            "(link_precedence = 'primary' AND linked_id IS NULL) OR "
            "(link_precedence = 'secondary' AND linked_id IS NOT NULL)",
            name="secondary_must_have_linked_id"
        ),
        Index("ix_contact_email_phone", "email", "phone_number"),
        Index("ix_contact_precedence_linked", "link_precedence", "linked_id"),
    )

    def __repr__(self):
        contact_info = []
        if self.email:
            contact_info.append(f"email={self.email}")
        if self.phone_number:
            contact_info.append(f"phone={self.phone_number}")

        return (
            f"<Contact(id={self.id}, "
            f"{', '.join(contact_info)}, "
            f"precedence={self.link_precedence}, linked_id={self.linked_id})>"
        )

    def is_primary(self):
        return self.link_precedence == LinkPrecedence.PRIMARY.value

    def is_secondary(self):
        return self.link_precedence == LinkPrecedence.SECONDARY.value

