"""Per-entity metadata: typed known fields plus an open, string-keyed bag."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional


@dataclass
class Annotations:
    """
    Metadata attached to a dataset, gene, strain or region.

    Known keys are plain attributes. Anything else goes into the generic map
    through `set` / `get`; keys there are case-sensitive.
    """

    quality_level: Optional[int] = None
    quality_description: Optional[str] = None
    _values: Dict[str, Any] = field(default_factory=dict, repr=False)

    def set(self, key: Optional[str], value: Any) -> Any:
        """
        Store ``value`` under ``key`` and return the previous value.

        An empty or missing key is ignored and returns None.
        """
        if not key:
            return None
        previous = self._values.get(key)
        self._values[key] = value
        return previous

    def get(self, key: Optional[str], default: Any = None) -> Any:
        if not key:
            return default
        return self._values.get(key, default)

    def remove(self, key: Optional[str]) -> Any:
        if not key:
            return None
        return self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)
