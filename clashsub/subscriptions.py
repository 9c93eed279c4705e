"""Fetching and caching subscriptions, and merging them into a template."""

from __future__ import annotations

import hashlib
import re
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

import requests

from .countries import get_country_name
from .errors import file_write_error, network_request_error, network_response_error
from .groups import ProxyGroup
from .subscription import Subscription

REQUEST_TIMEOUT = 30.0
USER_INFO_HEADER = "subscription-userinfo"

_PLACEHOLDER = re.compile(r"<(.*?)>")


class SubscriptionCache:
    """Downloads subscriptions and keeps a copy of each in ``directory``."""

    def __init__(self, directory: Union[str, Path] = "subs", retry_times: int = 3) -> None:
        self.directory = Path(directory)
        self.retry_times = retry_times
        self._lock = threading.Lock()

    def _path(self, url: str) -> Path:
        return self.directory / hashlib.sha224(url.encode("utf-8")).hexdigest()

    def _request(self, method: str, url: str, user_agent: str) -> requests.Response:
        headers = {"User-Agent": user_agent} if user_agent else {}
        last_error: Optional[requests.RequestException] = None
        for _ in range(max(self.retry_times, 0) + 1):
            try:
                return requests.request(
                    method, url, headers=headers, timeout=REQUEST_TIMEOUT, allow_redirects=True
                )
            except requests.RequestException as exc:
                last_error = exc
        raise network_request_error(url, last_error) from last_error

    def load(
        self, url: str, refresh: bool = False, user_agent: str = "", cache_expire: int = 300
    ) -> bytes:
        """The subscription body, from the cache while it is younger than
        ``cache_expire`` seconds, otherwise freshly downloaded."""
        if refresh:
            return self.fetch(url, user_agent)
        path = self._path(url)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return self.fetch(url, user_agent)
        if int(stat.st_mtime) + cache_expire > int(time.time()):
            with self._lock:
                return path.read_bytes()
        return self.fetch(url, user_agent)

    def fetch(self, url: str, user_agent: str = "") -> bytes:
        """Download the subscription and store it in the cache."""
        response = self._request("GET", url, user_agent)
        data = response.content
        path = self._path(url)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with self._lock:
                path.write_bytes(data)
        except OSError as exc:
            raise file_write_error(str(path), exc) from exc
        return data

    def fetch_user_info(self, url: str, user_agent: str = "") -> str:
        """The ``subscription-userinfo`` header the provider sends for ``url``."""
        response = self._request("HEAD", url, user_agent)
        user_info = response.headers.get(USER_INFO_HEADER, "")
        if user_info:
            return user_info
        raise network_response_error(f"{USER_INFO_HEADER} header not found", None)


def merge_sub_and_template(
    template: Subscription, sub: Subscription, ignore_country_groups: bool = False
) -> None:
    """Merge the nodes and country groups of ``sub`` into ``template``.

    In the template's groups, ``<all>`` expands to every node name,
    ``<countries>`` to the country group names and ``<XX>`` (a two-letter
    code) to the nodes of that country. With ``ignore_country_groups`` only
    ``<all>`` expands and the country groups are not added.
    """
    country_groups: List[ProxyGroup] = [g for g in sub.proxy_groups if g.is_country_group]
    country_names = [g.name for g in country_groups]
    by_name: Dict[str, ProxyGroup] = {g.name: g for g in country_groups}
    proxy_names = [p.name for p in sub.proxies]

    template.proxies.extend(sub.proxies)

    for group in template.proxy_groups:
        if group.is_country_group:
            continue
        expanded: List[str] = []
        for entry in group.proxies:
            match = _PLACEHOLDER.search(entry)
            if match is None:
                expanded.append(entry)
                continue
            key = match.group(1)
            if key == "all":
                expanded.extend(proxy_names)
            elif ignore_country_groups:
                continue
            elif key == "countries":
                expanded.extend(country_names)
            elif len(key.encode("utf-8")) == 2:
                country = by_name.get(get_country_name(key))
                if country is not None:
                    expanded.extend(country.proxies)
        group.proxies = expanded

    if not ignore_country_groups:
        template.proxy_groups.extend(sub.proxy_groups)