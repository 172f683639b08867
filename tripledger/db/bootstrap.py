"""First-run seeding of the schema marker and default settings.

`bootstrap` creates tables, then writes each of ``schemaVersion``,
``categories`` and ``paymentMethods`` only when that key is absent. Existing
values are left untouched so this is safe to run on every startup.
"""

from __future__ import annotations

import logging
from typing import List

from tripledger.models.constants import (
    DEFAULT_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
    SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
)

from .schema import META, SETTINGS
from .store import RecordStore
from .transaction import READWRITE

logger = logging.getLogger("tripledger.db")

DEFAULT_SETTINGS = {
    "categories": DEFAULT_CATEGORIES,
    "paymentMethods": DEFAULT_PAYMENT_METHODS,
}


def bootstrap(store: RecordStore) -> List[str]:
    """Ensure schema and seed records exist; return the keys that were seeded."""
    store.init_schema()
    seeded: List[str] = []
    with store.transaction([META, SETTINGS], READWRITE) as tx:
        if tx.get(META, SCHEMA_VERSION_KEY) is None:
            tx.put(META, {"key": SCHEMA_VERSION_KEY, "value": SCHEMA_VERSION})
            seeded.append(SCHEMA_VERSION_KEY)
        for key, defaults in DEFAULT_SETTINGS.items():
            # Checked per key: a missing list never reseeds the other one
            if tx.get(SETTINGS, key) is None:
                tx.put(SETTINGS, {"key": key, "value": list(defaults)})
                seeded.append(key)
    if seeded:
        logger.info("seeded defaults: %s", ", ".join(seeded))
    return seeded
