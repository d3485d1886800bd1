"""Initiative tracker: encounter rosters, turn order and inline editing."""

__version__ = "0.1.0"
