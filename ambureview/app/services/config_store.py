"""
Configuration Store.

JSON values keyed by name (storage locations, mechanical review template,
notification email). Reads go through an in-memory cache that is
invalidated on every write. Defaults are written once by `bootstrap`.
"""

import copy
import logging
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError
from ambureview.app.models.config_entry import ConfigEntry
from ambureview.app.services.config_defaults import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class ConfigStore:

    def __init__(self):
        self._cache: Dict[str, Any] = {}

    def invalidate(self, key: str = None):
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    async def get(self, db: AsyncSession, key: str) -> Any:
        """Value for `key`; falls back to the built-in default when unset."""
        if key in self._cache:
            return copy.deepcopy(self._cache[key])

        if key not in DEFAULT_CONFIG:
            raise ResourceNotFoundError("Config key", key)

        result = await db.execute(select(ConfigEntry).where(ConfigEntry.key == key))
        entry = result.scalar_one_or_none()
        value = entry.value if entry else copy.deepcopy(DEFAULT_CONFIG[key])

        self._cache[key] = value
        return copy.deepcopy(value)

    async def set(self, db: AsyncSession, key: str, value: Any) -> Any:
        if key not in DEFAULT_CONFIG:
            raise ResourceNotFoundError("Config key", key)

        result = await db.execute(select(ConfigEntry).where(ConfigEntry.key == key))
        entry = result.scalar_one_or_none()
        if entry is None:
            entry = ConfigEntry(key=key, value=value)
            db.add(entry)
        else:
            entry.value = value

        await db.commit()
        self.invalidate(key)
        logger.info("Config key '%s' updated", key)
        return value

    async def bootstrap(self, db: AsyncSession) -> int:
        """Write defaults for every missing key. Returns how many were created."""
        result = await db.execute(select(ConfigEntry.key))
        existing = set(result.scalars().all())

        created = 0
        for key, value in DEFAULT_CONFIG.items():
            if key not in existing:
                db.add(ConfigEntry(key=key, value=copy.deepcopy(value)))
                created += 1

        if created:
            await db.commit()
            logger.info("Bootstrapped %d configuration defaults", created)

        self.invalidate()
        return created


config_store = ConfigStore()
