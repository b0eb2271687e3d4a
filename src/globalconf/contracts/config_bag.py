"""String-keyed, string-valued option bag with default-value lookups.

ConfigBag is the shape of every option column the node touches: intent
options, state options and worker capability advertisements. Lookups follow
the control plane's key/value conventions (see get_bool / get_uint), so that
a missing key and a malformed value both fall back to the caller's default.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

# Largest value accepted by get_uint (unsigned 32-bit)
_UINT_MAX = 2**32 - 1


class ConfigBag(Mapping[str, str]):
    """Mutable mapping of option names to string values.

    Equality is structural and works against any Mapping, so a bag compares
    equal to a plain dict with the same items.

    Example:
        bag = ConfigBag({"ignore_lsp_down": "true"})
        bag.get_bool("ignore_lsp_down")        # True
        bag.get_uint("fdb_removal_limit", 0)   # 0 (absent)
        copy = bag.clone()
        copy.replace("mac_prefix", "0a:00:00")
        assert bag != copy
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        self._items: dict[str, str] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self.replace(key, value)

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ConfigBag({self._items!r})"

    def get_def(self, key: str, default: str) -> str:
        """Return the value for key, or default when absent."""
        return self._items.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Interpret an option as a boolean.

        An absent key yields default. When default is False, only a
        case-insensitive "true" reads as True; when default is True, only a
        case-insensitive "false" reads as False.
        """
        value = self._items.get(key)
        if value is None:
            return default
        if default:
            return value.lower() != "false"
        return value.lower() == "true"

    def get_uint(self, key: str, default: int = 0) -> int:
        """Interpret an option as an unsigned 32-bit decimal integer.

        Absent, non-decimal, negative or out-of-range values yield default.
        """
        value = self._items.get(key)
        if value is None:
            return default
        text = value.strip()
        if not text.isascii() or not text.isdigit():
            return default
        number = int(text)
        if number > _UINT_MAX:
            return default
        return number

    def clone(self) -> ConfigBag:
        """Return an independent copy of this bag."""
        copy = ConfigBag()
        copy._items = dict(self._items)
        return copy

    def replace(self, key: str, value: str) -> None:
        """Set key to value, inserting or overwriting."""
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(
                f"ConfigBag keys and values must be str, got {type(key).__name__}={type(value).__name__}"
            )
        self._items[key] = value

    def remove(self, key: str) -> bool:
        """Remove key if present. Returns True if something was removed."""
        return self._items.pop(key, None) is not None

    def to_dict(self) -> dict[str, str]:
        """Return a plain dict copy (for serialization)."""
        return dict(self._items)
