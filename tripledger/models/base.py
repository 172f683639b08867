from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CURRENCY_RE = re.compile(r"^[A-Z]{3,}$")


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in stored records."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def normalize_currency(value: str) -> str:
    code = (value or "").strip().upper()
    if not CURRENCY_RE.match(code):
        raise ValueError(f"invalid currency code '{value}'")
    return code


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def utc_now_iso(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
