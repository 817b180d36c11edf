"""
Correlate package: join scan hits with their blame results.
"""

from .keys import identity_key
from .linker import StoreState, reduce_event
from .store import CorrelationStore

__all__ = ["identity_key", "StoreState", "reduce_event", "CorrelationStore"]
