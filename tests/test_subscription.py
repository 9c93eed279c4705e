import pytest

from clashsub.groups import ProxyGroup, RuleProvider
from clashsub.subscription import Subscription

SAMPLE = """
dns:
  enable: true
mixed-port: 7890
allow-lan: false
proxies:
  - {name: a, type: ss, server: 192.0.2.1, port: 443, cipher: aes-128-gcm, password: password}
proxy-groups:
  - {name: G, type: select, proxies: [a]}
rules:
  - MATCH,G
rule-providers:
  r: {type: http, behavior: domain, url: "http://example.com/r.yaml"}
"""


def test_from_yaml_reads_sections():
    sub = Subscription.from_yaml(SAMPLE)
    assert [p.name for p in sub.proxies] == ["a"]
    assert sub.proxies[0].options["port"] == 443
    assert sub.proxy_groups == [ProxyGroup(name="G", type="select", proxies=["a"])]
    assert sub.rules == ["MATCH,G"]
    assert sub.rule_providers["r"] == RuleProvider(
        type="http", behavior="domain", url="http://example.com/r.yaml"
    )
    assert sub.extra["mixed-port"] == 7890
    assert sub.extra["dns"] == {"enable": True}


def test_yaml_round_trip():
    sub = Subscription.from_yaml(SAMPLE)
    assert Subscription.from_yaml(sub.to_yaml()) == Subscription.from_dict(sub.to_dict())
    again = Subscription.from_yaml(sub.to_yaml())
    assert again.proxies == sub.proxies
    assert again.rules == sub.rules
    assert again.rule_providers == sub.rule_providers


def test_key_order_and_empty_values_dropped():
    out = Subscription.from_yaml(SAMPLE).to_dict()
    assert list(out) == ["mixed-port", "rule-providers", "proxies", "proxy-groups", "rules", "dns"]
    assert "allow-lan" not in out


def test_bytes_input_accepted():
    sub = Subscription.from_yaml(SAMPLE.encode("utf-8"))
    assert sub.rules == ["MATCH,G"]


def test_empty_document():
    sub = Subscription.from_yaml("")
    assert sub == Subscription()
    assert sub.to_dict() == {}


def test_plain_text_is_not_a_subscription():
    with pytest.raises(ValueError):
        Subscription.from_yaml("c3M6Ly9ZV1Z6TFRFeU9DMW5ZMjA2")


def test_invalid_yaml_raises():
    with pytest.raises(ValueError):
        Subscription.from_yaml("proxies: [unclosed")


def test_unsupported_proxy_type_raises():
    with pytest.raises(ValueError, match="unsupported proxy type"):
        Subscription.from_dict({"proxies": [{"name": "x", "type": "carrier-pigeon"}]})


def test_proxies_must_be_list():
    with pytest.raises(ValueError):
        Subscription.from_dict({"proxies": "a"})