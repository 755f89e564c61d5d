"""Copy-trading models — a followed trader's activity and the trades we mirror."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TradeActivity(BaseModel):
    """One fill from a trader's public activity feed.

    Field names follow the feed's camelCase keys; ``timestamp`` accepts unix
    seconds or milliseconds.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    proxy_wallet: str = ""
    timestamp: datetime
    condition_id: str = ""
    activity_type: str = Field(default="TRADE", alias="type")
    size: float = 0.0
    usdc_size: float = 0.0
    transaction_hash: str = ""
    price: float = 0.0
    asset: str = ""
    side: str = "BUY"
    outcome_index: int = 0
    title: str = ""
    slug: str = ""
    event_slug: str = ""
    outcome: str = ""

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)


class TraderPosition(BaseModel):
    """A holding reported for a trader's wallet; only the value is used for sizing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    proxy_wallet: str = ""
    asset: str = ""
    condition_id: str = ""
    size: float = 0.0
    avg_price: float = 0.0
    current_value: float = 0.0
    cur_price: float = 0.0
    title: str = ""
    outcome: str = ""


class CopyTrade(BaseModel):
    """A trader's fill scaled down to our book."""

    trader_address: str
    transaction_hash: str
    condition_id: str
    asset: str
    side: str
    original_size: float
    our_size: float
    price: float
    title: str = ""
    event_slug: str = ""
