"""The conversion request: which subscriptions to fetch and how to shape them."""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from .groups import ClashType

_PARAM_ERROR = "参数错误: "
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*:")


def _lookup(data: Mapping[str, Any], key: str) -> Tuple[bool, Any]:
    """Find ``key`` exactly, else ignoring case; null counts as absent."""
    if key in data:
        value = data[key]
    else:
        folded = key.casefold()
        for name, value in data.items():
            if isinstance(name, str) and name.casefold() == folded:
                break
        else:
            return False, None
    return value is not None, value


def _json_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


def _json_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected a boolean, got {value!r}")
    return value


def _json_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected an integer, got {value!r}")
    return value


def _json_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        raise ValueError(f"expected an array, got {value!r}")
    return [_json_str(item) for item in value]


def _json_str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError(f"expected an object, got {value!r}")
    return {str(k): _json_str(v) for k, v in value.items()}


def _json_object(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"expected an object, got {value!r}")
    return value


def _json_clash_type(value: Any) -> Optional[ClashType]:
    number = _json_int(value)
    if number == 0:
        return None
    try:
        return ClashType(number)
    except ValueError:
        raise ValueError(f"unknown clashType: {number}") from None


def _read(data: Mapping[str, Any], spec: Tuple[Tuple[str, str, Any], ...]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for attr, key, convert in spec:
        present, value = _lookup(data, key)
        if present:
            try:
                kwargs[attr] = convert(value)
            except ValueError as exc:
                raise ValueError(f"{key}: {exc}") from exc
    return kwargs


@dataclass
class RuleProviderSpec:
    """A rule provider the caller wants added to the output."""

    behavior: str = ""
    url: str = ""
    group: str = ""
    prepend: bool = False
    name: str = ""


_PROVIDER_SPEC = (
    ("behavior", "behavior", _json_str),
    ("url", "url", _json_str),
    ("group", "group", _json_str),
    ("prepend", "prepend", _json_bool),
    ("name", "name", _json_str),
)


def _provider_from_json(value: Any) -> RuleProviderSpec:
    return RuleProviderSpec(**_read(_json_object(value), _PROVIDER_SPEC))


@dataclass
class RuleSpec:
    """A single rule the caller wants added to the output."""

    rule: str = ""
    prepend: bool = False


_RULE_SPEC = (("rule", "rule", _json_str), ("prepend", "prepend", _json_bool))


def _rule_from_json(value: Any) -> RuleSpec:
    return RuleSpec(**_read(_json_object(value), _RULE_SPEC))


def _list_of(convert):
    def read(value: Any) -> list:
        if not isinstance(value, list):
            raise ValueError(f"expected an array, got {value!r}")
        return [convert(item) for item in value]

    return read


_CONFIG_SPEC = (
    ("clash_type", "clashType", _json_clash_type),
    ("subscriptions", "subscriptions", _json_str_list),
    ("proxies", "proxies", _json_str_list),
    ("refresh", "refresh", _json_bool),
    ("template", "template", _json_str),
    ("rule_providers", "ruleProviders", _list_of(_provider_from_json)),
    ("rules", "rules", _list_of(_rule_from_json)),
    ("auto_test", "autoTest", _json_bool),
    ("lazy", "lazy", _json_bool),
    ("sort", "sort", _json_str),
    ("remove", "remove", _json_str),
    ("replace", "replace", _json_str_map),
    ("node_list", "nodeList", _json_bool),
    ("ignore_country_group", "ignoreCountryGroup", _json_bool),
    ("user_agent", "userAgent", _json_str),
    ("use_udp", "useUDP", _json_bool),
)


@dataclass
class ConvertConfig:
    """Everything a conversion request asks for."""

    clash_type: Optional[ClashType] = None
    subscriptions: List[str] = field(default_factory=list)
    proxies: List[str] = field(default_factory=list)
    refresh: bool = False
    template: str = ""
    rule_providers: List[RuleProviderSpec] = field(default_factory=list)
    rules: List[RuleSpec] = field(default_factory=list)
    auto_test: bool = False
    lazy: bool = False
    sort: str = ""
    remove: str = ""
    replace: Dict[str, str] = field(default_factory=dict)
    node_list: bool = False
    ignore_country_group: bool = False
    user_agent: str = ""
    use_udp: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConvertConfig":
        """Read the JSON form; keys match ignoring case, bad types raise ValueError."""
        return cls(**_read(_json_object(data), _CONFIG_SPEC))

    def to_dict(self) -> Dict[str, Any]:
        """The JSON form of the request."""
        return {
            "clashType": int(self.clash_type) if self.clash_type is not None else 0,
            "subscriptions": list(self.subscriptions),
            "proxies": list(self.proxies),
            "refresh": self.refresh,
            "template": self.template,
            "ruleProviders": [
                {
                    "behavior": p.behavior,
                    "url": p.url,
                    "group": p.group,
                    "prepend": p.prepend,
                    "name": p.name,
                }
                for p in self.rule_providers
            ],
            "rules": [{"rule": r.rule, "prepend": r.prepend} for r in self.rules],
            "autoTest": self.auto_test,
            "lazy": self.lazy,
            "sort": self.sort,
            "remove": self.remove,
            "replace": dict(self.replace),
            "nodeList": self.node_list,
            "ignoreCountryGroup": self.ignore_country_group,
            "userAgent": self.user_agent,
            "useUDP": self.use_udp,
        }


def _decode_base64(text: str) -> str:
    data = text.strip().rstrip("=")
    data += "=" * (-len(data) % 4)
    raw = base64.b64decode(data, altchars=b"-_", validate=True)
    return raw.decode("utf-8")


def _check_request_uri(value: str) -> None:
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        raise ValueError(f"invalid control character in URL: {value!r}")
    if not (value.startswith("/") or _SCHEME.match(value)):
        raise ValueError(f"invalid URI for request: {value}")
    parts = urlsplit(value)
    _ = parts.port


def parse_convert_config(text: str) -> ConvertConfig:
    """Decode and validate a request given as base64 (URL-safe or standard) JSON.

    Raises ValueError with the reason when the request is malformed.
    """
    try:
        payload = _decode_base64(text)
    except ValueError as exc:
        raise ValueError(_PARAM_ERROR + str(exc)) from exc
    try:
        query = ConvertConfig.from_dict(json.loads(payload))
    except ValueError as exc:
        raise ValueError(_PARAM_ERROR + str(exc)) from exc

    if not query.subscriptions and not query.proxies:
        raise ValueError(_PARAM_ERROR + "sub 和 proxy 不能同时为空")
    for sub in query.subscriptions:
        if not sub.startswith("http"):
            raise ValueError(_PARAM_ERROR + "sub 格式错误")
        try:
            _check_request_uri(sub)
        except ValueError as exc:
            raise ValueError(_PARAM_ERROR + str(exc)) from exc

    if query.template.startswith("http"):
        _check_request_uri(query.template)

    names = set()
    for provider in query.rule_providers:
        if provider.name in names:
            raise ValueError(_PARAM_ERROR + "Rule-Provider 名称重复")
        names.add(provider.name)
    return query