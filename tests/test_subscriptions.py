import os
import time

import pytest
import requests
import responses
from responses.registries import OrderedRegistry

from clashsub.errors import CommonError, ErrorCode
from clashsub.grouping import add_proxies
from clashsub.groups import ProxyGroup
from clashsub.proxies import Proxy
from clashsub.subscription import Subscription
from clashsub.subscriptions import SubscriptionCache, merge_sub_and_template

URL = "https://example.com/sub"


def _mock():
    return responses.RequestsMock(registry=OrderedRegistry, assert_all_requests_are_fired=False)


def _cached_files(directory):
    return list(directory.iterdir())


def test_fetch_returns_body_and_writes_cache(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=0)
    with _mock() as rsps:
        rsps.add(responses.GET, URL, body=b"proxies: []")
        data = cache.fetch(URL, "clash-agent")
        assert rsps.calls[0].request.headers["User-Agent"] == "clash-agent"
    assert data == b"proxies: []"
    files = _cached_files(tmp_path)
    assert len(files) == 1
    assert files[0].read_bytes() == data


def test_load_uses_fresh_cache_and_refresh_bypasses_it(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=0)
    with _mock() as rsps:
        rsps.add(responses.GET, URL, body=b"first")
        rsps.add(responses.GET, URL, body=b"second")
        assert cache.load(URL, False, "", 3600) == b"first"
        assert cache.load(URL, False, "", 3600) == b"first"
        assert len(rsps.calls) == 1
        assert cache.load(URL, True, "", 3600) == b"second"


def test_load_refetches_expired_cache(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=0)
    with _mock() as rsps:
        rsps.add(responses.GET, URL, body=b"old")
        rsps.add(responses.GET, URL, body=b"new")
        cache.fetch(URL)
        (cached,) = _cached_files(tmp_path)
        past = time.time() - 7200
        os.utime(cached, (past, past))
        assert cache.load(URL, False, "", 60) == b"new"
    assert cached.read_bytes() == b"new"


def test_fetch_retries_after_connection_error(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=2)
    with _mock() as rsps:
        rsps.add(responses.GET, URL, body=requests.exceptions.ConnectionError("down"))
        rsps.add(responses.GET, URL, body=b"ok")
        assert cache.fetch(URL) == b"ok"
        assert len(rsps.calls) == 2


def test_fetch_gives_up_after_retries(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=1)
    with _mock() as rsps:
        rsps.add(responses.GET, URL, body=requests.exceptions.ConnectionError("down"))
        rsps.add(responses.GET, URL, body=requests.exceptions.ConnectionError("down"))
        with pytest.raises(CommonError) as info:
            cache.fetch(URL)
        assert len(rsps.calls) == cache.retry_times + 1
    assert info.value.code is ErrorCode.NETWORK_REQUEST
    assert _cached_files(tmp_path) == []


def test_fetch_user_info_reads_header(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=0)
    info = "upload=1; download=2; total=3; expire=4"
    with _mock() as rsps:
        rsps.add(responses.HEAD, URL, headers={"subscription-userinfo": info})
        assert cache.fetch_user_info(URL, "agent") == info


def test_fetch_user_info_without_header(tmp_path):
    cache = SubscriptionCache(tmp_path, retry_times=0)
    with _mock() as rsps:
        rsps.add(responses.HEAD, URL)
        with pytest.raises(CommonError) as info:
            cache.fetch_user_info(URL)
    assert info.value.code is ErrorCode.NETWORK_RESPONSE


def _ss(name):
    return Proxy(
        type="ss",
        name=name,
        options={"server": "example.com", "port": 443, "password": "password", "cipher": "aes-128-gcm"},
    )


def _sub():
    sub = Subscription()
    add_proxies(sub, False, False, ("ss",), _ss("香港 01"), _ss("日本 01"), _ss("香港 02"))
    return sub


def _template(entries):
    return Subscription(proxy_groups=[ProxyGroup(name="Proxy", type="select", proxies=entries)])


def test_merge_expands_all_and_adds_country_groups():
    template = _template(["<all>", "DIRECT"])
    sub = _sub()
    merge_sub_and_template(template, sub, False)
    assert template.proxy_groups[0].proxies == ["香港 01", "日本 01", "香港 02", "DIRECT"]
    assert [p.name for p in template.proxies] == [p.name for p in sub.proxies]
    assert [g.name for g in template.proxy_groups[1:]] == [g.name for g in sub.proxy_groups]


def test_merge_expands_countries_and_codes():
    template = _template(["<countries>", "<HK>", "<zz>"])
    sub = _sub()
    merge_sub_and_template(template, sub, False)
    country_names = [g.name for g in sub.proxy_groups]
    assert template.proxy_groups[0].proxies == country_names + ["香港 01", "香港 02"]


def test_merge_ignoring_country_groups():
    template = _template(["<countries>", "<all>", "<HK>"])
    sub = _sub()
    merge_sub_and_template(template, sub, True)
    assert template.proxy_groups[0].proxies == [p.name for p in sub.proxies]
    assert len(template.proxy_groups) == 1
    assert len(template.proxies) == len(sub.proxies)