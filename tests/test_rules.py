from clashsub.groups import RuleProvider
from clashsub.rules import (
    append_rule_provider,
    append_rules,
    prepend_rule_provider,
    prepend_rules,
)
from clashsub.subscription import Subscription


def test_prepend_rules_puts_new_rules_first_in_order():
    sub = Subscription(rules=["DOMAIN,a.com,DIRECT", "MATCH,Proxy"])
    prepend_rules(sub, "R1", "R2")
    assert sub.rules == ["R1", "R2", "DOMAIN,a.com,DIRECT", "MATCH,Proxy"]


def test_prepend_rules_on_empty():
    sub = Subscription()
    prepend_rules(sub, "R1")
    assert sub.rules == ["R1"]


def test_append_rules_keeps_match_last():
    sub = Subscription(rules=["DOMAIN,a.com,DIRECT", "MATCH,Proxy"])
    append_rules(sub, "R1", "R2")
    assert sub.rules == ["DOMAIN,a.com,DIRECT", "R1", "R2", "MATCH,Proxy"]


def test_append_rules_without_match_goes_to_end():
    sub = Subscription(rules=["DOMAIN,a.com,DIRECT"])
    append_rules(sub, "R1")
    assert sub.rules == ["DOMAIN,a.com,DIRECT", "R1"]


def test_append_rules_on_empty():
    sub = Subscription()
    append_rules(sub, "R1", "R2")
    assert sub.rules == ["R1", "R2"]


def test_prepend_rule_provider_registers_and_routes():
    sub = Subscription(rules=["MATCH,Proxy"])
    provider = RuleProvider(type="http", behavior="domain", url="https://example.com/ads.yaml")
    prepend_rule_provider(sub, "ads", "REJECT", provider)
    assert sub.rule_providers["ads"] is provider
    assert sub.rules == ["RULE-SET,ads,REJECT", "MATCH,Proxy"]


def test_append_rule_provider_stays_before_match():
    sub = Subscription(rules=["DOMAIN,a.com,DIRECT", "MATCH,Proxy"])
    provider = RuleProvider(type="http", behavior="classical")
    append_rule_provider(sub, "cn", "DIRECT", provider)
    assert sub.rule_providers == {"cn": provider}
    assert sub.rules[-1] == "MATCH,Proxy"
    assert sub.rules[-2] == "RULE-SET,cn,DIRECT"