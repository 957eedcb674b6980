"""
funseq: lazy, restartable, composable sequences.

Usage:
    import funseq as fs

    fs.range(10).slice(3, 6).to_list()            # [3, 4, 5]
    fs.evolve(lambda n: n + 1, 1).while_(lambda n, i: n < 6).to_list()
    fs.range(10**9).some(lambda n, i: n >= 0)     # stops after one pull
"""

from .constructors import evolve, flatten, flatten_entries, for_all, range, sequence, sort
from .lazy import NOT_FOUND, Found, LazySequence, Single
from .models import SequenceSettings
from .protocol import EXHAUSTED, Produced, Producer
from .utils import (
    InvalidRangeError,
    MaterializationLimitError,
    SequenceError,
    configure,
    get_settings,
)

__version__ = "0.1.0"
__all__ = [
    # Chain
    "LazySequence",
    "Found",
    "Single",
    "NOT_FOUND",
    # Protocol
    "Producer",
    "Produced",
    "EXHAUSTED",
    # Constructors
    "sequence",
    "evolve",
    "range",
    "for_all",
    "flatten",
    "flatten_entries",
    "sort",
    # Configuration and errors
    "SequenceSettings",
    "configure",
    "get_settings",
    "SequenceError",
    "InvalidRangeError",
    "MaterializationLimitError",
]
