"""Probabilistic move generation."""

from .config import SolverConfig, load_solver_config
from .engine import MoveGenerator, MoveReport
from .search import RandomSource, SearchResult, SearchStrategy
from .selector import NoMoveAvailableError

__all__ = [
    "MoveGenerator",
    "MoveReport",
    "NoMoveAvailableError",
    "RandomSource",
    "SearchResult",
    "SearchStrategy",
    "SolverConfig",
    "load_solver_config",
]
