from . import curva_s

__all__ = ["curva_s"]
