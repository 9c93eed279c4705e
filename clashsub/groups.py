"""Proxy groups, rule providers and the client flavours they target."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

SORT_SIZE_ASC = "sizeasc"
SORT_SIZE_DESC = "sizedesc"
SORT_NAME_ASC = "nameasc"
SORT_NAME_DESC = "namedesc"


class ClashType(IntEnum):
    """The client flavour a configuration is built for."""

    CLASH = 1
    META = 2


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"not a string: {value!r}")


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"not an integer: {value!r}")


def _as_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"not a boolean: {value!r}")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_as_str(item) for item in value]
    raise ValueError(f"not a list: {value!r}")


# (attribute, YAML key, converter, omitted when empty)
_Key = Tuple[str, str, Callable[[Any], Any], bool]


def _read(keys: Tuple[_Key, ...], data: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    kwargs: Dict[str, Any] = {}
    for attr, key, convert, _ in keys:
        if key in data:
            try:
                kwargs[attr] = convert(data[key])
            except ValueError as exc:
                raise ValueError(f"{key}: {exc}") from exc
    return kwargs


def _write(keys: Tuple[_Key, ...], obj: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attr, key, _, omitempty in keys:
        value = getattr(obj, attr)
        if omitempty and not value:
            continue
        out[key] = list(value) if isinstance(value, list) else value
    return out


_GROUP_KEYS: Tuple[_Key, ...] = (
    ("type", "type", _as_str, True),
    ("name", "name", _as_str, True),
    ("proxies", "proxies", _as_str_list, True),
    ("url", "url", _as_str, True),
    ("interval", "interval", _as_int, True),
    ("tolerance", "tolerance", _as_int, True),
    ("lazy", "lazy", _as_bool, False),
    ("disable_udp", "disable-udp", _as_bool, True),
    ("strategy", "strategy", _as_str, True),
    ("icon", "icon", _as_str, True),
    ("timeout", "timeout", _as_int, True),
    ("use", "use", _as_str_list, True),
    ("interface_name", "interface-name", _as_str, True),
    ("routing_mark", "routing-mark", _as_int, True),
    ("include_all", "include-all", _as_bool, True),
    ("include_all_proxies", "include-all-proxies", _as_bool, True),
    ("include_all_providers", "include-all-providers", _as_bool, True),
    ("filter", "filter", _as_str, True),
    ("exclude_filter", "exclude-filter", _as_str, True),
    ("expected_status", "expected-status", _as_int, True),
    ("hidden", "hidden", _as_bool, True),
)


@dataclass
class ProxyGroup:
    """A proxy group. ``is_country_group`` and ``size`` are never written out."""

    type: str = ""
    name: str = ""
    proxies: List[str] = field(default_factory=list)
    is_country_group: bool = False
    url: str = ""
    interval: int = 0
    tolerance: int = 0
    lazy: bool = False
    size: int = 0
    disable_udp: bool = False
    strategy: str = ""
    icon: str = ""
    timeout: int = 0
    use: List[str] = field(default_factory=list)
    interface_name: str = ""
    routing_mark: int = 0
    include_all: bool = False
    include_all_proxies: bool = False
    include_all_providers: bool = False
    filter: str = ""
    exclude_filter: str = ""
    expected_status: int = 0
    hidden: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProxyGroup":
        """Read a group from a mapping; unknown keys are ignored."""
        return cls(**_read(_GROUP_KEYS, data))

    def to_dict(self) -> Dict[str, Any]:
        """The group as an ordered mapping; ``lazy`` is always present."""
        return _write(_GROUP_KEYS, self)


_PROVIDER_KEYS: Tuple[_Key, ...] = (
    ("type", "type", _as_str, True),
    ("behavior", "behavior", _as_str, True),
    ("url", "url", _as_str, True),
    ("path", "path", _as_str, True),
    ("interval", "interval", _as_int, True),
    ("format", "format", _as_str, True),
)


@dataclass
class RuleProvider:
    """A rule set the client fetches on its own."""

    type: str = ""
    behavior: str = ""
    url: str = ""
    path: str = ""
    interval: int = 0
    format: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleProvider":
        """Read a provider from a mapping; unknown keys are ignored."""
        return cls(**_read(_PROVIDER_KEYS, data))

    def to_dict(self) -> Dict[str, Any]:
        """The provider as an ordered mapping without empty values."""
        return _write(_PROVIDER_KEYS, self)


def _size_key(group: ProxyGroup) -> Tuple[int, str]:
    return (group.size, group.name)


def _name_key(group: ProxyGroup) -> Tuple[str, str]:
    return (group.name.casefold(), group.name)


def sort_groups(groups: Iterable[ProxyGroup], mode: str = "") -> List[ProxyGroup]:
    """Return the groups sorted by ``mode``.

    ``sizeasc``/``sizedesc`` order by size, ties by name; ``nameasc`` and
    ``namedesc`` order by name ignoring case. Any other mode means ``nameasc``.
    """
    items = list(groups)
    if mode == SORT_SIZE_ASC:
        return sorted(items, key=_size_key)
    if mode == SORT_SIZE_DESC:
        return sorted(items, key=_size_key, reverse=True)
    if mode == SORT_NAME_DESC:
        return sorted(items, key=_name_key, reverse=True)
    return sorted(items, key=_name_key)