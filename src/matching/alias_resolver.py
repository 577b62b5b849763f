"""
Alias Resolver - exact lookup of learned receipt spellings.

Aliases are indexed by (store scope, normalized alias text) so the
precedence rule is explicit: a store-scoped alias always beats a global
one with the same text. No fuzzy matching happens here; fuzzy matching
against alias text is a separate pipeline strategy.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from src.models import Alias
from src.utils.normalization import normalize_key

# None stands for the global scope
ScopeKey = Tuple[Optional[str], str]


class AliasIndex:
    """
    Immutable lookup table built from a snapshot of alias records.

    When the same (store, text) pair appears more than once the first
    record wins, matching insert-ignore-conflict storage semantics.
    """

    def __init__(self, aliases: Iterable[Alias]):
        self._by_scope: Dict[ScopeKey, Alias] = {}
        self._by_text: Dict[str, List[Alias]] = {}
        self._texts: List[str] = []

        for alias in aliases:
            key = normalize_key(alias.alias)
            self._by_scope.setdefault((alias.store_id, key), alias)
            if key not in self._by_text:
                self._texts.append(alias.alias)
            self._by_text.setdefault(key, []).append(alias)

    def __len__(self) -> int:
        return len(self._by_scope)

    def lookup(self, raw_name: str, store_id: Optional[str] = None) -> Optional[Alias]:
        """Store-scoped alias first (when a store is given), then global."""
        key = normalize_key(raw_name)
        if not key:
            return None

        if store_id is not None:
            scoped = self._by_scope.get((store_id, key))
            if scoped is not None:
                return scoped

        return self._by_scope.get((None, key))

    def resolve(self, raw_name: str, store_id: Optional[str] = None) -> Optional[str]:
        """Returns the item id an exact alias points at, if any."""
        alias = self.lookup(raw_name, store_id)
        return alias.item_id if alias else None

    @property
    def texts(self) -> List[str]:
        """Distinct alias texts (first spelling seen), for fuzzy matching."""
        return list(self._texts)

    def item_for_text(self, alias_text: str, store_id: Optional[str] = None) -> Optional[str]:
        """
        Item id for an alias text that came out of fuzzy matching.

        Unlike resolve(), aliases learned at other stores are accepted as a
        last resort because the text itself is already a known spelling.
        """
        alias = self.lookup(alias_text, store_id)
        if alias is not None:
            return alias.item_id

        others = self._by_text.get(normalize_key(alias_text))
        return others[0].item_id if others else None


def resolve(raw_name: str, store_id: Optional[str], aliases: Iterable[Alias]) -> Optional[str]:
    """One-shot resolve over an alias list; build an AliasIndex for batches."""
    return AliasIndex(aliases).resolve(raw_name, store_id)
