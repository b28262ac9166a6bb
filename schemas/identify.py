"""
Pydantic schemas for the /identify endpoint
Handles request validation and response serialization
Blank strings and the literal "null" are treated as missing values
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(v):
    if isinstance(v, str) and v.strip().lower() in ("", "null"):
        return None
    return v


class IdentifyRequest(BaseModel):
    """
    Request schema for the /identify endpoint
    Validates that at least one of email or phoneNumber is provided
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"email": "lorraine@hillvalley.edu", "phoneNumber": "123456"},
                {"email": "mcfly@hillvalley.edu", "phoneNumber": None},
                {"email": None, "phoneNumber": "123456"},
            ]
        },
    )

    email: Optional[str] = Field(
        None,
        description="Customer email address",
        examples=["lorraine@hillvalley.edu", None]
    )
    phoneNumber: Optional[str] = Field(
        None,
        description="Customer phone number, matched exactly as sent",
        examples=["123456", None]
    )

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v) -> Optional[str]:
        """
        Clean email input
        Only checks for an '@'; matching is exact so no normalization is applied
        """
        v = _blank_to_none(v)
        if v is None:
            return None

        if not isinstance(v, str):
            raise ValueError('Email must be a string')

        v = v.strip()
        if '@' not in v:
            raise ValueError('Invalid email format: email must contain @')
        return v

    @field_validator('phoneNumber', mode='before')
    @classmethod
    def validate_phone_number(cls, v) -> Optional[str]:
        """
        Clean phone number input
        Numbers are accepted and stored in their string form
        """
        v = _blank_to_none(v)
        if v is None:
            return None

        if isinstance(v, bool):
            raise ValueError('Phone number must be a string or number')
        if isinstance(v, (int, float)):
            v = str(int(v))

        if not isinstance(v, str):
            raise ValueError('Phone number must be a string or number')

        return v.strip()

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        if not self.email and not self.phoneNumber:
            raise ValueError('Either email or phoneNumber must be provided')
        return self


class ContactResponse(BaseModel):
    """
    Consolidated view of one customer

    The primary's own email and phone number always come first
    """
    primaryContactId: int = Field(description="ID of the primary contact")
    emails: List[str] = Field(
        description="All email addresses associated with this customer",
        examples=[["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"]]
    )
    phoneNumbers: List[str] = Field(
        description="All phone numbers associated with this customer",
        examples=[["123456"]]
    )
    secondaryContactIds: List[int] = Field(
        description="IDs of all secondary contacts linked to the primary",
        examples=[[23]]
    )


class IdentifyResponse(BaseModel):
    """
    Response schema for the /identify endpoint
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "contact": {
                    "primaryContactId": 1,
                    "emails": ["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"],
                    "phoneNumbers": ["123456"],
                    "secondaryContactIds": [23]
                }
            }
        }
    )

    contact: ContactResponse = Field(description="Consolidated contact information")


class ErrorResponse(BaseModel):
    """
    Error response schema for API errors
    """
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "ValidationError",
                    "message": "Either email or phoneNumber must be provided",
                    "details": {"errors": []}
                },
                {
                    "error": "InternalServerError",
                    "message": "Unable to process identity reconciliation request"
                }
            ]
        }
    )

    error: str = Field(description="Error type or category")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
