"""Decision phase: per-option cost models and the selector built on them."""

from .cost_model import CostModel, LinearFit, fit_cost_model
from .selector import StrategySelector, choose, selector_for

__all__ = [
    "CostModel",
    "LinearFit",
    "StrategySelector",
    "choose",
    "fit_cost_model",
    "selector_for",
]
