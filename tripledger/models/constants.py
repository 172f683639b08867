"""Domain constants: defaults seeded at bootstrap and field limits."""

from typing import FrozenSet, Tuple

SCHEMA_VERSION = "1.0.0"
SCHEMA_VERSION_KEY = "schemaVersion"

DEFAULT_CATEGORIES: Tuple[str, ...] = (
    "Flights",
    "Lodging",
    "Local transport",
    "Food & drinks",
    "Attractions",
    "Shopping",
    "SIM/Internet",
    "Fees (ATM/baggage/etc.)",
    "Misc",
    "Souvenirs",
)
DEFAULT_PAYMENT_METHODS: Tuple[str, ...] = ("Cash", "Wise", "Apple Pay", "Other")

# ISO 4217 currencies whose minor unit is 0.
ZERO_DECIMAL_CURRENCIES: FrozenSet[str] = frozenset(
    {
        "BIF",
        "CLP",
        "DJF",
        "GNF",
        "ISK",
        "JPY",
        "KMF",
        "KRW",
        "PYG",
        "RWF",
        "UGX",
        "UYI",
        "VND",
        "VUV",
        "XAF",
        "XOF",
        "XPF",
    }
)

# Filter value meaning "no restriction" for category / payment.
FILTER_ALL = "All"

TRIP_NAME_MAX = 50
NOTE_MAX = 120
LOCATION_MAX = 80
TAGS_MAX = 10
TAG_MAX = 24
DEFAULT_PAID_BY = "Me"
