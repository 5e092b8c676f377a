"""
Base Schema Classes for Pydantic Models

Payout ledger clients speak camelCase JSON (premiumAmount, commissionOn, ...)
while Python code uses snake_case. These base classes wire the alias
generator once so every schema accepts both and responds in camelCase.

RULE: All response schemas that read from ORM models MUST inherit from BaseResponseSchema.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class PayoutRecordResponse(BaseResponseSchema):
            id: str
            net_profit: Decimal
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        # Allow population by field name or alias
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Unknown fields are ignored, which also drops derived figures a client
    echoes back from an earlier response.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        # Enum inputs are stored as plain strings
        use_enum_values=True,
    )


class BaseUpdateSchema(BaseModel):
    """
    Base class for update/patch schemas.

    All fields are optional by default for partial updates.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        # Enum inputs are stored as plain strings
        use_enum_values=True,
    )
