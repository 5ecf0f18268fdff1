"""Information-maximising next-guess engine for single-player Battleship."""

__version__ = "0.1.0"
