# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
HistoryManager: bounded linear undo/redo over document snapshots.

The history is a list of snapshots plus an index pointing at the active
one. Pushing after an undo drops the redo tail; pushing a snapshot equal
to the active one is ignored; once the list grows past ``max_size`` the
oldest snapshot is evicted and the index shifts down with it.
"""

import logging
from typing import List, Optional

from ..constants import MAX_HISTORY_SIZE

logger = logging.getLogger(__name__)


class HistoryManager:

    def __init__(self, initial: str = "", max_size: int = MAX_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError(f"History size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._snapshots: List[str] = [initial]
        self._index = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> str:
        return self._snapshots[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def push(self, snapshot: str) -> bool:
        """
        Record a new snapshot

        Args:
            snapshot: Document HTML after a committed change

        Returns:
            True if the snapshot was recorded, False if it equals the active one
        """
        if self._snapshots[self._index] == snapshot:
            return False

        if self.can_redo:
            del self._snapshots[self._index + 1:]

        self._snapshots.append(snapshot)
        self._index += 1

        if len(self._snapshots) > self.max_size:
            self._snapshots.pop(0)
            self._index -= 1
            logger.debug(f"History cap {self.max_size} reached, evicted oldest snapshot")

        return True

    def undo(self) -> Optional[str]:
        if not self.can_undo:
            return None
        self._index -= 1
        return self._snapshots[self._index]

    def redo(self) -> Optional[str]:
        if not self.can_redo:
            return None
        self._index += 1
        return self._snapshots[self._index]

    def reset(self, snapshot: str) -> None:
        """Start over with ``snapshot`` as the only entry"""
        self._snapshots = [snapshot]
        self._index = 0

    def snapshots(self) -> List[str]:
        return list(self._snapshots)
