"""
Storage implementations.

Provides implementations of the SnapshotStore interface for persisting round
snapshots and judgment history.

Available implementations:
- RoundLogStorage: Append-only JSONL round log with a latest-round index
"""

from .round_log_storage import RoundLogStorage

__all__ = ["RoundLogStorage"]
