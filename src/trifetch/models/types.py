"""Pydantic models for backend records.

Summary is built only by SummaryDecoder; AccountBalance and Employee are
validated straight from backend JSON.
"""

from pydantic import BaseModel, ConfigDict, Field


class Summary(BaseModel):
    """One aggregation result group (e.g. a release year)."""

    model_config = ConfigDict(frozen=True)

    key: int | str
    count: int = Field(default=0, ge=0)
    items: tuple[str, ...] = ()


class AccountBalance(BaseModel):
    """Finalized account view from the NEAR RPC node.

    Amounts are in yoctoNEAR (10^-24 NEAR); the node sends them as strings.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    amount: int
    locked: int = 0
    storage_usage: int | None = None
    block_height: int | None = None
    block_hash: str | None = None


class Employee(BaseModel):
    """Row of the `employees` table."""

    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    age: int
    interests: str
    city: str
