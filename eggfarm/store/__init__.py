"""Entity store package."""

from eggfarm.store.entity_store import Collection, EntityStore, SettingsRecord

__all__ = [
    "Collection",
    "EntityStore",
    "SettingsRecord",
]
