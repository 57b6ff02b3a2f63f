from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .dataclasses import EncounterSlot, GameConfig


class EncounterLocator(ABC):
    """Abstract strategy for finding and re-encoding wild encounter slots."""

    @abstractmethod
    def find_slots(self, buffer: Union[bytes, bytearray], game_config: GameConfig) -> List[EncounterSlot]:
        """Return every non-empty slot, without touching the buffer."""
        pass

    @abstractmethod
    def encode_species(self, slot: EncounterSlot, national_id: int, generation: int) -> Optional[bytes]:
        """Bytes to store at ``slot.address`` for a species, or None if it cannot be stored."""
        pass
