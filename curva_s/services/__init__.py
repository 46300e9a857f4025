"""Service layer namespace."""

__all__ = [
    "actuals",
    "curva_s",
    "distribution",
]
