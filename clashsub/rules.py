"""Adding rules and rule providers to a configuration."""

from __future__ import annotations

from .groups import RuleProvider
from .subscription import Subscription

_MATCH = "MATCH"


def _rule_set(provider_name: str, group: str) -> str:
    return f"RULE-SET,{provider_name},{group}"


def prepend_rules(sub: Subscription, *args: str) -> None:
    """Put ``args`` before the existing rules, keeping their order."""
    sub.rules = list(args) + list(sub.rules)


def append_rules(sub: Subscription, *args: str) -> None:
    """Add ``args`` after the existing rules.

    A final catch-all ``MATCH`` rule stays last: the new rules go just before it.
    """
    if sub.rules and _MATCH in sub.rules[-1]:
        match_rule = sub.rules[-1]
        sub.rules = sub.rules[:-1] + list(args) + [match_rule]
        return
    sub.rules = list(sub.rules) + list(args)


def prepend_rule_provider(
    sub: Subscription, provider_name: str, group: str, provider: RuleProvider
) -> None:
    """Register ``provider`` and route its matches to ``group`` before all rules."""
    sub.rule_providers[provider_name] = provider
    prepend_rules(sub, _rule_set(provider_name, group))


def append_rule_provider(
    sub: Subscription, provider_name: str, group: str, provider: RuleProvider
) -> None:
    """Register ``provider`` and route its matches to ``group`` after the rules."""
    sub.rule_providers[provider_name] = provider
    append_rules(sub, _rule_set(provider_name, group))