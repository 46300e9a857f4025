from .curva_s_repo import CurvaSRepo, CurvaSStore, FixtureCurvaSRepo

__all__ = ["CurvaSRepo", "CurvaSStore", "FixtureCurvaSRepo"]
