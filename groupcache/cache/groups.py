"""Cache group definitions and the flattened group registry."""

from typing import Any, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

logger = structlog.get_logger()


class GroupSettings(BaseModel):
    """Settings for a single cache group."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    active: bool = False
    key: str = ""
    lifetime: Optional[int] = None  # seconds, falls back to the global lifetime

    @property
    def usable(self) -> bool:
        """Whether reads and writes may go through this group."""
        return self.active and bool(self.key)


class CacheGroupRegistry:
    """Read-only lookup of ``"group.key"`` names to group settings."""

    def __init__(self, groups: Optional[Mapping[str, GroupSettings]] = None):
        self._groups: dict[str, GroupSettings] = dict(groups or {})

    @classmethod
    def from_config(cls, raw_groups: Optional[Mapping[str, Any]]) -> "CacheGroupRegistry":
        """Flatten nested group config into a registry.

        Groups whose value is not a mapping and entries that do not validate
        as ``GroupSettings`` are skipped. When a name is defined twice the
        first definition is kept.

        Args:
            raw_groups: ``{group: {key: settings}}`` mapping

        Returns:
            Registry keyed by ``"group.key"``
        """
        groups: dict[str, GroupSettings] = {}

        for group, keys in (raw_groups or {}).items():
            if not isinstance(keys, Mapping):
                logger.debug("Skipping malformed cache group", group=group)
                continue

            for key, raw_settings in keys.items():
                name = f"{group}.{key}"
                if name in groups:
                    logger.debug("Skipping duplicate cache group", group=name)
                    continue

                settings = _parse_settings(raw_settings)
                if settings is None:
                    logger.debug("Skipping malformed cache group entry", group=name)
                    continue

                groups[name] = settings

        return cls(groups)

    def get(self, name: str) -> Optional[GroupSettings]:
        """Get settings for a group name, or None if not defined."""
        return self._groups.get(name)

    def get_by_group_and_key(self, group: str, key: str) -> Optional[GroupSettings]:
        """Get settings by the two halves of a group name."""
        return self.get(f"{group}.{key}")

    def all(self) -> dict[str, GroupSettings]:
        """Get a copy of every registered group."""
        return dict(self._groups)

    def __contains__(self, name: object) -> bool:
        return name in self._groups

    def __len__(self) -> int:
        return len(self._groups)


def _parse_settings(raw: Any) -> Optional[GroupSettings]:
    if isinstance(raw, GroupSettings):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        return GroupSettings.model_validate(dict(raw))
    except ValidationError:
        return None
