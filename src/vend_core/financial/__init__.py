"""Financial report (Structure B): revenue, cost of goods, margin, ingredients."""

from vend_core.financial.api import StructureB, build_structure_b
from vend_core.financial.ingredients import build_ingredient_consumption

__all__ = ["StructureB", "build_ingredient_consumption", "build_structure_b"]
