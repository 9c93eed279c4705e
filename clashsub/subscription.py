"""A whole client configuration: nodes, groups, rules and everything else."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

import yaml

from .groups import ProxyGroup, RuleProvider
from .proxies import Proxy

# Top-level keys written before the proxy sections, in output order.
_HEAD_KEYS = (
    "port", "socks-port", "redir-port", "tproxy-port", "mixed-port",
    "ss-config", "vmess-config", "inbound-tfo", "inbound-mptcp",
    "authentication", "skip-auth-prefixes", "lan-allowed-ips",
    "lan-disallowed-ips", "allow-lan", "bind-address", "mode",
    "unified-delay", "log-level", "ipv6", "external-controller",
    "external-controller-pipe", "external-controller-unix",
    "external-controller-tls", "external-controller-cors", "external-ui",
    "external-ui-url", "external-ui-name", "external-doh-server", "secret",
    "interface-name", "routing-mark", "tunnels", "geo-auto-update",
    "geo-update-interval", "geodata-mode", "geodata-loader",
    "geosite-matcher", "tcp-concurrent", "find-process-mode",
    "global-client-fingerprint", "global-ua", "etag-support",
    "keep-alive-idle", "keep-alive-interval", "disable-keep-alive",
    "proxy-providers",
)

# Top-level keys written after the proxy sections, in output order.
_TAIL_KEYS = (
    "sub-rules", "listeners", "hosts", "dns", "ntp", "tun", "tuic-server",
    "iptables", "experimental", "profile", "geox-url", "sniffer", "tls",
    "clash-for-android",
)

_OWN_KEYS = ("rule-providers", "proxies", "proxy-groups", "rules")


def _rule_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"rule is not a string: {value!r}")


def _list_of(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list")
    return value


@dataclass
class Subscription:
    """A client configuration.

    Nodes, groups, rules and rule providers are held as objects; all other
    top-level settings are kept as they were read, in ``extra``.
    """

    proxies: List[Proxy] = field(default_factory=list)
    proxy_groups: List[ProxyGroup] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    rule_providers: Dict[str, RuleProvider] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Subscription":
        """Read a configuration mapping; raises ValueError for bad input."""
        if not isinstance(data, Mapping):
            raise ValueError(f"subscription must be a mapping, got {type(data).__name__}")
        proxies = [Proxy.from_dict(item) for item in _list_of(data.get("proxies"), "proxies")]
        groups = [
            ProxyGroup.from_dict(item)
            for item in _list_of(data.get("proxy-groups"), "proxy-groups")
        ]
        rules = [_rule_text(item) for item in _list_of(data.get("rules"), "rules")]
        raw_providers = data.get("rule-providers") or {}
        if not isinstance(raw_providers, Mapping):
            raise ValueError("rule-providers must be a mapping")
        providers = {
            str(name): RuleProvider.from_dict(value or {})
            for name, value in raw_providers.items()
        }
        extra = {
            key: copy.deepcopy(value) for key, value in data.items() if key not in _OWN_KEYS
        }
        return cls(
            proxies=proxies,
            proxy_groups=groups,
            rules=rules,
            rule_providers=providers,
            extra=extra,
        )

    @classmethod
    def from_yaml(cls, text: Union[str, bytes]) -> "Subscription":
        """Parse a YAML document; raises ValueError if it is not a configuration."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid YAML: {exc}") from exc
        if data is None:
            return cls()
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """The configuration as an ordered mapping without empty values."""
        out: Dict[str, Any] = {}

        def put(key: Any, value: Any) -> None:
            if value is None or not value:
                return
            out[key] = copy.deepcopy(value)

        for key in _HEAD_KEYS:
            if key in self.extra:
                put(key, self.extra[key])
        for key, value in self.extra.items():
            if key not in _HEAD_KEYS and key not in _TAIL_KEYS:
                put(key, value)
        if self.rule_providers:
            out["rule-providers"] = {
                name: provider.to_dict() for name, provider in self.rule_providers.items()
            }
        if self.proxies:
            out["proxies"] = [proxy.to_dict() for proxy in self.proxies]
        if self.proxy_groups:
            out["proxy-groups"] = [group.to_dict() for group in self.proxy_groups]
        if self.rules:
            out["rules"] = list(self.rules)
        for key in _TAIL_KEYS:
            if key in self.extra:
                put(key, self.extra[key])
        return out

    def to_yaml(self) -> str:
        """The configuration as a YAML document."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)