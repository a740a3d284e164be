import copy
import logging
import os
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# 0 = bez limitu
HISTORY_LIMIT = int(os.getenv("SEATING_HISTORY_LIMIT", "0"))


class HistoryManager:
    """
    Liniowa historia undo/redo (jedna oś czasu, bez rozgałęzień).

    `pointer` wskazuje bieżący snapshot; -1 = historia pusta.
    Manager nie zmienia stanu planu - zwraca snapshot, a wywołujący go aplikuje.
    """

    def __init__(self, max_size: int = HISTORY_LIMIT):
        self.max_size = max_size
        self._entries: List[Any] = []
        self.pointer = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return self.pointer > 0

    @property
    def can_redo(self) -> bool:
        return self.pointer < len(self._entries) - 1

    @property
    def current(self) -> Optional[Any]:
        if self.pointer < 0:
            return None
        return copy.deepcopy(self._entries[self.pointer])

    def push(self, snapshot: Any) -> bool:
        # Ochrona przed pętlą: ten sam snapshot dwa razy pod rząd
        if self._entries and self._entries[self.pointer] == snapshot:
            logger.debug("Pomijam zduplikowany snapshot historii")
            return False

        del self._entries[self.pointer + 1:]
        self._entries.append(copy.deepcopy(snapshot))
        self.pointer = len(self._entries) - 1

        if self.max_size and len(self._entries) > self.max_size:
            overflow = len(self._entries) - self.max_size
            del self._entries[:overflow]
            self.pointer -= overflow

        return True

    def undo(self) -> Optional[Any]:
        if not self.can_undo:
            return None
        self.pointer -= 1
        return copy.deepcopy(self._entries[self.pointer])

    def redo(self) -> Optional[Any]:
        if not self.can_redo:
            return None
        self.pointer += 1
        return copy.deepcopy(self._entries[self.pointer])

    def clear(self) -> None:
        self._entries = []
        self.pointer = -1
