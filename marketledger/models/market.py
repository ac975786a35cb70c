"""Marketplace configuration and listing models.

Both models are frozen.  An ``Item`` is never edited in place; the ledger
reads it back from storage, and the only change it ever sees is the one-way
``sold`` flip performed by a purchase.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# Reserved identity for the marketplace's own custody account.
ESCROW_IDENTITY = "marketplace:escrow"


class MarketplaceConfig(BaseModel):
    """Fee configuration, fixed when the ledger is first created.

    Examples
    --------
    >>> cfg = MarketplaceConfig(fee_account="owner", fee_percent=1)
    >>> cfg.escrow_identity
    'marketplace:escrow'
    """

    model_config = ConfigDict(frozen=True)

    fee_account: str = Field(min_length=1)
    fee_percent: int = Field(ge=0)  # integer percentage, 1 == 1%
    escrow_identity: str = ESCROW_IDENTITY
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class Item(BaseModel):
    """One listing record.

    ``item_id`` values are dense and start at 1.  ``buyer`` and ``sold_at``
    stay ``None`` until the item is purchased.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int = Field(ge=1)
    collection: str
    token_id: int
    price: int = Field(gt=0)  # base units
    seller: str
    sold: bool = False
    buyer: str | None = None
    listed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    sold_at: datetime | None = None
