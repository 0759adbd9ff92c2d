"""Add/remove-by-identity selection editing"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def toggle(values: Sequence[T], value: T) -> List[T]:
    """
    Return a new list with `value` removed if present, else appended at the end.

    Remaining items keep their order, so toggling twice gives back the original.
    """
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


@dataclass
class MerchantSelection:
    """
    Selected merchant ids with their display names kept at the same index.

    Names are stored so a selection can be redisplayed after the search result
    it came from has scrolled away.
    """

    ids: List[str] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.names) != len(self.ids):
            # Pad or cut the names so both lists stay the same length
            names = list(self.names[: len(self.ids)])
            names.extend(self.ids[len(names):])
            self.names = names

    def toggle(self, merchant_id: str, name: Optional[str] = None) -> None:
        if merchant_id in self.ids:
            index = self.ids.index(merchant_id)
            self.ids = self.ids[:index] + self.ids[index + 1:]
            self.names = self.names[:index] + self.names[index + 1:]
        else:
            self.ids = [*self.ids, merchant_id]
            self.names = [*self.names, name or merchant_id]

    def add(self, merchant_id: str, name: Optional[str] = None) -> None:
        """Select a merchant without deselecting it when already present"""
        if merchant_id not in self.ids:
            self.toggle(merchant_id, name)

    def name_for(self, merchant_id: str) -> Optional[str]:
        if merchant_id in self.ids:
            return self.names[self.ids.index(merchant_id)]
        return None

    def clear(self) -> None:
        self.ids = []
        self.names = []
