"""Adding proxy nodes to a configuration, grouped by country."""

from __future__ import annotations

from typing import Iterable

from .countries import get_country_name
from .groups import ProxyGroup
from .proxies import Proxy
from .subscription import Subscription

AUTOTEST_URL = "http://www.gstatic.com/generate_204"
AUTOTEST_INTERVAL = 300
AUTOTEST_TOLERANCE = 50


def _new_group(name: str, proxy_name: str, autotest: bool, lazy: bool) -> ProxyGroup:
    if not autotest:
        return ProxyGroup(
            name=name,
            type="select",
            proxies=[proxy_name],
            is_country_group=True,
            size=1,
        )
    return ProxyGroup(
        name=name,
        type="url-test",
        proxies=[proxy_name],
        is_country_group=True,
        url=AUTOTEST_URL,
        interval=AUTOTEST_INTERVAL,
        tolerance=AUTOTEST_TOLERANCE,
        lazy=lazy,
        size=1,
    )


def add_proxies(
    sub: Subscription,
    autotest: bool,
    lazy: bool,
    supported_types: Iterable[str],
    *args: Proxy,
) -> None:
    """Add nodes of a supported type to ``sub`` and to their country's group.

    A country group is created for the first node of that country: a
    ``select`` group, or a ``url-test`` group when ``autotest`` is set.
    """
    supported = set(supported_types)
    for proxy in args:
        if proxy.type not in supported:
            continue
        sub.proxies.append(proxy)
        country = get_country_name(proxy.name)
        found = False
        for group in sub.proxy_groups:
            if group.name == country:
                group.proxies.append(proxy.name)
                group.size += 1
                found = True
        if not found:
            sub.proxy_groups.append(_new_group(country, proxy.name, autotest, lazy))