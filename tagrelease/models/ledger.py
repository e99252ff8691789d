"""Run ledger entry model: one sealed entry per recorded transition."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class LedgerEntry(BaseModel):
    """A single entry in the append-only run ledger.

    ``subject`` names what changed: ``"pipeline"``, ``"job:<platform_id>"``
    or ``"upload:<key>"``.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    subject: str
    transition: str  # "from->to", or an outcome such as "uploaded"
    detail: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed on append, seals this entry
