"""Domain services."""
from .cancellation_policy import CancellationPolicy
from .inventory_ledger import InventoryAlert, InventoryLedger, StockReservation
from .pricing import PriceQuote, PricingPolicy
from .sequence_issuer import SequenceIssuer, date_key_for

__all__ = [
    "CancellationPolicy",
    "InventoryAlert",
    "InventoryLedger",
    "PriceQuote",
    "PricingPolicy",
    "SequenceIssuer",
    "StockReservation",
    "date_key_for",
]
