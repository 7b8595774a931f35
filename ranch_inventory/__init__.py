"""Ranch inventory stock ledger, alerting and reorder engine."""

__version__ = "1.0.0"
