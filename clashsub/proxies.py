"""Proxy node definitions and their YAML form.

A :class:`Proxy` holds the node type, its display name and the options that
belong to that type. Options are read from a mapping (as parsed from YAML),
converted to their declared kinds, and written back in a fixed key order.
Keys the type does not know are dropped. Empty optional values are left out
of the output; required ones are always written.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

import yaml


class _Kind(Enum):
    STR = auto()
    INT = auto()
    UINT = auto()
    PORT = auto()
    BOOL = auto()
    STR_LIST = auto()
    ANY_MAP = auto()
    STR_MAP = auto()
    STR_LIST_MAP = auto()
    STRUCT = auto()


@dataclass(frozen=True)
class _Field:
    key: str
    kind: _Kind
    omitempty: bool = True
    spec: Tuple["_Field", ...] = ()


def _req(key: str, kind: _Kind) -> _Field:
    return _Field(key, kind, omitempty=False)


def _opt(key: str, kind: _Kind = _Kind.STR) -> _Field:
    return _Field(key, kind)


def _struct(key: str, spec: Tuple[_Field, ...]) -> _Field:
    return _Field(key, _Kind.STRUCT, spec=spec)


S, I, U, P, B = _Kind.STR, _Kind.INT, _Kind.UINT, _Kind.PORT, _Kind.BOOL
SL = _Kind.STR_LIST

_ECH = (_opt("enable", B), _opt("config"))
_REALITY = (_req("public-key", S), _opt("short-id"))
_GRPC = (_opt("grpc-service-name"),)
_WS = (
    _opt("path"),
    _opt("headers", _Kind.STR_MAP),
    _opt("max-early-data", I),
    _opt("early-data-header-name"),
)
_HTTP = (_opt("method"), _opt("path", SL), _opt("headers", _Kind.STR_LIST_MAP))
_HTTP2 = (_opt("host", SL), _opt("path"))
_TROJAN_SS = (_opt("enabled", B), _opt("method"), _opt("password"))

_ANYTLS = (
    _req("server", S),
    _req("port", P),
    _req("password", S),
    _opt("alpn", SL),
    _opt("sni"),
    _struct("ech-opts", _ECH),
    _opt("client-fingerprint"),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("udp", B),
    _opt("idle-session-check-interval", I),
    _opt("idle-session-timeout", I),
    _opt("min-idle-session", I),
)

_HYSTERIA = (
    _req("server", S),
    _opt("port", P),
    _opt("ports"),
    _opt("protocol"),
    _opt("obfs-protocol"),
    _req("up", S),
    _opt("up-speed", I),
    _req("down", S),
    _opt("down-speed", I),
    _opt("auth"),
    _opt("auth-str"),
    _opt("obfs"),
    _opt("sni"),
    _struct("ech-opts", _ECH),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("alpn", SL),
    _opt("ca"),
    _opt("ca-str"),
    _opt("recv-window-conn", I),
    _opt("recv-window", I),
    _opt("disable-mtu-discovery", B),
    _opt("fast-open", B),
    _opt("hop-interval", I),
)

_HYSTERIA2 = (
    _req("server", S),
    _opt("port", P),
    _opt("ports"),
    _opt("hop-interval", I),
    _opt("up"),
    _opt("down"),
    _opt("password"),
    _opt("obfs"),
    _opt("obfs-password"),
    _opt("sni"),
    _struct("ech-opts", _ECH),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("alpn", SL),
    _opt("ca"),
    _opt("ca-str"),
    _opt("cwnd", I),
    _opt("udp-mtu", I),
    _opt("initial-stream-receive-window", U),
    _opt("max-stream-receive-window", U),
    _opt("initial-connection-receive-window", U),
    _opt("max-connection-receive-window", U),
)

_SHADOWSOCKS = (
    _req("server", S),
    _req("port", P),
    _req("password", S),
    _req("cipher", S),
    _opt("udp", B),
    _opt("plugin"),
    _opt("plugin-opts", _Kind.ANY_MAP),
    _opt("udp-over-tcp", B),
    _opt("udp-over-tcp-version", I),
    _opt("client-fingerprint"),
)

_SHADOWSOCKSR = (
    _req("server", S),
    _req("port", P),
    _req("password", S),
    _req("cipher", S),
    _req("obfs", S),
    _opt("obfs-param"),
    _req("protocol", S),
    _opt("protocol-param"),
    _opt("udp", B),
)

_SOCKS = (
    _req("server", S),
    _req("port", P),
    _opt("username"),
    _opt("password"),
    _opt("tls", B),
    _opt("udp", B),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
)

_TROJAN = (
    _req("server", S),
    _req("port", P),
    _req("password", S),
    _opt("alpn", SL),
    _opt("sni"),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("udp", B),
    _opt("network"),
    _struct("ech-opts", _ECH),
    _struct("reality-opts", _REALITY),
    _struct("grpc-opts", _GRPC),
    _struct("ws-opts", _WS),
    _struct("ss-opts", _TROJAN_SS),
    _opt("client-fingerprint"),
)

_VLESS = (
    _req("server", S),
    _req("port", P),
    _req("uuid", S),
    _opt("flow"),
    _opt("tls", B),
    _opt("alpn", SL),
    _opt("udp", B),
    _opt("packet-addr", B),
    _opt("xudp", B),
    _opt("packet-encoding"),
    _opt("network"),
    _struct("ech-opts", _ECH),
    _struct("reality-opts", _REALITY),
    _struct("http-opts", _HTTP),
    _struct("h2-opts", _HTTP2),
    _struct("grpc-opts", _GRPC),
    _struct("ws-opts", _WS),
    _opt("ws-path"),
    _opt("ws-headers", _Kind.STR_MAP),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("servername"),
    _opt("client-fingerprint"),
)

_VMESS = (
    _req("server", S),
    _req("port", P),
    _req("uuid", S),
    _req("alterId", P),
    _req("cipher", S),
    _opt("udp", B),
    _opt("network"),
    _opt("tls", B),
    _opt("alpn", SL),
    _opt("skip-cert-verify", B),
    _opt("fingerprint"),
    _opt("servername"),
    _struct("ech-opts", _ECH),
    _struct("reality-opts", _REALITY),
    _struct("http-opts", _HTTP),
    _struct("h2-opts", _HTTP2),
    _struct("grpc-opts", _GRPC),
    _struct("ws-opts", _WS),
    _opt("packet-addr", B),
    _opt("xudp", B),
    _opt("packet-encoding"),
    _opt("global-padding", B),
    _opt("authenticated-length", B),
    _opt("client-fingerprint"),
)

_SPECS: Mapping[str, Tuple[_Field, ...]] = MappingProxyType({
    "anytls": _ANYTLS,
    "hysteria": _HYSTERIA,
    "hysteria2": _HYSTERIA2,
    "ss": _SHADOWSOCKS,
    "ssr": _SHADOWSOCKSR,
    "trojan": _TROJAN,
    "vless": _VLESS,
    "vmess": _VMESS,
    "socks5": _SOCKS,
})

PROXY_TYPES: Tuple[str, ...] = tuple(_SPECS)
"""Proxy types that can be read and written."""

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_int_or_string(value: Any) -> int:
    """Read a value that may be an integer or a decimal integer string.

    ``None`` reads as 0. Anything else that is not a whole decimal number
    raises :class:`ValueError`.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _DECIMAL.fullmatch(value):
        return int(value, 10)
    raise ValueError(f"not an integer: {value!r}")


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise ValueError(f"not a string: {value!r}")


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"not an integer: {value!r}")


def _to_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"not a boolean: {value!r}")


def _to_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_to_str(item) for item in value]
    raise ValueError(f"not a list: {value!r}")


def _to_map(value: Any) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    raise ValueError(f"not a mapping: {value!r}")


def _decode_value(spec_field: _Field, value: Any) -> Any:
    kind = spec_field.kind
    if kind is _Kind.STR:
        return _to_str(value)
    if kind is _Kind.INT:
        return _to_int(value)
    if kind is _Kind.UINT:
        number = _to_int(value)
        if number < 0:
            raise ValueError(f"not an unsigned integer: {value!r}")
        return number
    if kind is _Kind.PORT:
        return parse_int_or_string(value)
    if kind is _Kind.BOOL:
        return _to_bool(value)
    if kind is _Kind.STR_LIST:
        return _to_list(value)
    if kind is _Kind.ANY_MAP:
        return copy.deepcopy(dict(_to_map(value)))
    if kind is _Kind.STR_MAP:
        return {_to_str(k): _to_str(v) for k, v in _to_map(value).items()}
    if kind is _Kind.STR_LIST_MAP:
        return {_to_str(k): _to_list(v) for k, v in _to_map(value).items()}
    return _decode_fields(spec_field.spec, _to_map(value))


def _decode_fields(spec: Tuple[_Field, ...], data: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for spec_field in spec:
        if spec_field.key in data:
            try:
                result[spec_field.key] = _decode_value(spec_field, data[spec_field.key])
            except ValueError as exc:
                raise ValueError(f"{spec_field.key}: {exc}") from exc
    return result


def _zero(spec_field: _Field) -> Any:
    kind = spec_field.kind
    if kind is _Kind.STR:
        return ""
    if kind in (_Kind.INT, _Kind.UINT, _Kind.PORT):
        return 0
    if kind is _Kind.BOOL:
        return False
    if kind is _Kind.STR_LIST:
        return []
    return {}


def _is_empty(spec_field: _Field, value: Any) -> bool:
    if spec_field.kind is _Kind.STRUCT:
        return all(
            _is_empty(sub, value.get(sub.key, _zero(sub))) for sub in spec_field.spec
        )
    return not value


def _encode_value(spec_field: _Field, value: Any) -> Any:
    if spec_field.kind is _Kind.STRUCT:
        return _encode_fields(spec_field.spec, value)
    if isinstance(value, (list, dict)):
        return copy.deepcopy(value)
    return value


def _encode_fields(spec: Tuple[_Field, ...], values: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for spec_field in spec:
        value = values.get(spec_field.key, _zero(spec_field))
        if spec_field.omitempty and _is_empty(spec_field, value):
            continue
        out[spec_field.key] = _encode_value(spec_field, value)
    return out


def _spec_for(proxy_type: str) -> Tuple[_Field, ...]:
    try:
        return _SPECS[proxy_type]
    except KeyError:
        raise ValueError(f"unsupported proxy type: {proxy_type}") from None


@dataclass
class Proxy:
    """A proxy node: its type, name and type-specific options.

    ``sub_name`` names the subscription the node came from and is never
    written out.
    """

    type: str
    name: str
    options: Dict[str, Any] = field(default_factory=dict)
    sub_name: str = ""

    def __post_init__(self) -> None:
        spec = _SPECS.get(self.type)
        if spec is not None:
            self.options = _decode_fields(spec, self.options)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Proxy":
        """Read a node from a mapping; raises ValueError for bad input."""
        if not isinstance(data, Mapping):
            raise ValueError(f"proxy must be a mapping, got {type(data).__name__}")
        proxy_type = _to_str(data.get("type"))
        name = _to_str(data.get("name"))
        spec = _spec_for(proxy_type)
        return cls(type=proxy_type, name=name, options=_decode_fields(spec, data))

    def to_dict(self) -> Dict[str, Any]:
        """The node as an ordered mapping: type, name, then its options."""
        spec = _spec_for(self.type)
        out: Dict[str, Any] = {"type": self.type, "name": self.name}
        out.update(_encode_fields(spec, _decode_fields(spec, self.options)))
        return out

    def to_yaml(self) -> str:
        """The node as a YAML document."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)