##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
A cache of resolved entities keyed by numeric ID or by name.

The cache lives as long as the table that owns it: it is cleared when the
table lists all of its records (so the listing reflects the current database
state) and when the table is closed.
"""

import logging
from typing import Dict, Generic, Iterator, Optional, TypeVar, Union


LOG = logging.getLogger(__name__)

E = TypeVar("E")
Key = Union[int, str]


class EntityCache(Generic[E]):
    """
    Mapping from `int` IDs or `str` names to entity instances.

    Methods:
        get: Get the entity cached under a key.
        put: Cache an entity under a key that isn't used yet.
        alias: Cache an entity under extra keys where they are free.
        remove: Remove a key, and every alias of the same entity.
        clear: Remove every entry.
    """

    def __init__(self, name: str = None):
        """
        Args:
            name: The name of the owning table, for log messages.
        """
        self.name = name
        self._entries: Dict[Key, E] = {}

    def __repr__(self) -> str:
        return f"EntityCache(name={self.name!r}, size={len(self._entries)})"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[Key]:
        return iter(self._entries)

    @staticmethod
    def _check_key(key: Key):
        if isinstance(key, bool) or not isinstance(key, (int, str)):
            raise TypeError(f"Cache keys must be int IDs or str names, not {type(key).__name__}.")

    def get(self, key: Key) -> Optional[E]:
        """
        Get the entity cached under a key.

        Args:
            key: An ID or a name.

        Returns:
            The cached entity, or None.
        """
        return self._entries.get(key)

    def put(self, key: Key, entity: E):
        """
        Cache an entity under a key.

        Args:
            key: An ID or a name.
            entity: The entity.

        Raises:
            KeyError: If another entity is already cached under `key`.
        """
        self._check_key(key)
        existing = self._entries.get(key)
        if existing is not None and existing is not entity:
            raise KeyError(f"Key {key!r} is already cached in {self.name or 'cache'}: {existing!r}")
        self._entries[key] = entity

    def alias(self, entity: E, *keys: Optional[Key]):
        """
        Cache an entity under extra keys, skipping None keys and keys already in use.

        Args:
            entity: The entity.
            keys: The extra keys.
        """
        for key in keys:
            if key is None:
                continue
            self._check_key(key)
            self._entries.setdefault(key, entity)

    def remove(self, key: Key) -> Optional[E]:
        """
        Remove a key and every other key that points at the same entity.

        Args:
            key: An ID or a name.

        Returns:
            The removed entity, or None if the key wasn't cached.
        """
        entity = self._entries.pop(key, None)
        if entity is not None:
            self.discard(entity)
        return entity

    def discard(self, entity: E):
        """
        Remove every key that points at an entity.

        Args:
            entity: The entity to evict.
        """
        for key in [key for key, cached in self._entries.items() if cached is entity]:
            del self._entries[key]

    def clear(self):
        """Remove every entry."""
        if self._entries:
            LOG.debug(f"Clearing {len(self._entries)} cached entries of {self.name or 'cache'}.")
        self._entries.clear()
