# clashsub

`clashsub` is a library for building Clash and Clash.Meta configuration
files from proxy subscriptions. It downloads subscriptions with an on-disk
cache, reads and writes proxy nodes and whole configurations as YAML, groups
nodes by country and merges them into a template.

## Modules

| module                     | what it holds |
|----------------------------|---------------|
| `clashsub.config`          | `Config`, `load_config` |
| `clashsub.errors`          | `CommonError`, `ErrorCode`, `is_error_code`, `get_error_code` and error constructors |
| `clashsub.fs`              | `make_dir`, `make_essential_dirs`, `load_template` |
| `clashsub.log`             | `log_level`, `setup_logging` |
| `clashsub.country_names`   | country tables `COUNTRY_ISO`, `COUNTRY_CHINESE_NAME`, `COUNTRY_ENGLISH_NAME` |
| `clashsub.countries`       | `get_country_name`, `flag_for`, `COUNTRY_FLAG` |
| `clashsub.proxies`         | `Proxy`, `parse_int_or_string`, `PROXY_TYPES` |
| `clashsub.groups`          | `ClashType`, `ProxyGroup`, `RuleProvider`, `sort_groups` |
| `clashsub.subscription`    | `Subscription` |
| `clashsub.convert_config`  | `ConvertConfig`, `RuleProviderSpec`, `RuleSpec`, `parse_convert_config` |
| `clashsub.shortlinks`      | `ShortLink`, `ShortLinkStore` |
| `clashsub.rules`           | `prepend_rules`, `append_rules`, `prepend_rule_provider`, `append_rule_provider` |
| `clashsub.grouping`        | `add_proxies` |
| `clashsub.subscriptions`   | `SubscriptionCache`, `merge_sub_and_template` |

## Configuration

`load_config(search_paths, environ)` looks in each search path for
`config.yaml`, `config.yml`, `config.json`, then `clashsub.yaml`,
`clashsub.yml`, `clashsub.json`, and uses the first one that reads as a
mapping. Without search paths it tries `.`, `./config` and `/etc/clashsub/`.
Non-empty environment variables named `CLASHSUB_<KEY>` (for example
`CLASHSUB_LOG_LEVEL`) override the file. `environ` defaults to `os.environ`.

| key                     | default               |
|-------------------------|-----------------------|
| `address`               | `0.0.0.0:8011`        |
| `meta_template`         | `template_meta.yaml`  |
| `clash_template`        | `template_clash.yaml` |
| `request_retry_times`   | `3`                   |
| `request_max_file_size` | `1048576`             |
| `cache_expire`          | `300` (seconds)       |
| `log_level`             | `info`                |
| `short_link_length`     | `6`                   |

A value that cannot be read as the setting's type raises a `CommonError`
with `ErrorCode.CONFIG_INVALID`.

```python
from clashsub.config import load_config

config = load_config([".", "./config"], {"CLASHSUB_LOG_LEVEL": "debug"})
print(config.address, config.log_level)
```

`make_essential_dirs(base)` creates the `subs`, `logs` and `data`
directories, and `setup_logging(level, log_dir)` sends the `clashsub`
logger to `app.log` in `log_dir` as JSON lines (rotated at 500 MiB, three
gzipped backups) and to standard output as plain text. Level names are
`debug`, `info`, `warn` and `error`; anything else means `info`.

## Proxies

```python
from clashsub.proxies import Proxy

proxy = Proxy.from_dict({
    "type": "ss",
    "name": "🇯🇵 Tokyo 01",
    "server": "example.com",
    "port": 8388,
    "cipher": "aes-128-gcm",
    "password": "password",
})
print(proxy.to_yaml())
```

The types in `PROXY_TYPES` are `anytls`, `hysteria`, `hysteria2`, `ss`,
`ssr`, `trojan`, `vless`, `vmess` and `socks5`. Other types raise
`ValueError` when read or written. Options a type does not know are dropped;
empty optional options are left out of the output. Ports may be given as
numbers or decimal strings.

`Subscription.from_yaml` / `to_yaml` read and write a whole configuration:
nodes, proxy groups, rules and rule providers become objects, and every
other top-level setting is kept in `extra` and written back unchanged.

## Country groups

```python
from clashsub.countries import get_country_name

get_country_name("🇯🇵 Tokyo 01")   # "日本(JP)"
get_country_name("HK-01")          # "香港(HK)"
get_country_name("somewhere")      # "其他地区"
```

Flags are tried first, then Chinese names, then two-letter codes, then
English names.

`add_proxies(sub, autotest, lazy, supported_types, *proxies)` adds the nodes
whose type is in `supported_types` to `sub` and puts each into a group named
after its country: a `select` group, or a `url-test` group against
`http://www.gstatic.com/generate_204` (interval 300, tolerance 50) when
`autotest` is set. `sort_groups(groups, mode)` orders groups by `sizeasc`,
`sizedesc`, `nameasc` or `namedesc`; names compare ignoring case, and any
other mode means `nameasc`.

## Merging into a template

```python
from clashsub.subscription import Subscription
from clashsub.subscriptions import merge_sub_and_template

with open("templates/template_meta.yaml", encoding="utf-8") as f:
    template = Subscription.from_yaml(f.read())
with open("nodes.yaml", encoding="utf-8") as f:
    nodes = Subscription.from_yaml(f.read())
merge_sub_and_template(template, nodes, False)
print(template.to_yaml())
```

In the template's groups `<all>` becomes every node name, `<countries>` the
country group names and `<XX>` the nodes of that country. With
`ignore_country_groups` set only `<all>` is expanded and the country groups
are not added.

`append_rules` keeps a final `MATCH` rule last; `prepend_rule_provider` and
`append_rule_provider` register the provider and add a
`RULE-SET,<name>,<group>` rule.

## Fetching subscriptions

`SubscriptionCache(directory="subs", retry_times=3)` downloads with
`fetch(url, user_agent)` and stores the body in a file named after the
SHA-224 of the URL. `load(url, refresh, user_agent, cache_expire)` returns
the cached copy while it is younger than `cache_expire` seconds.
`fetch_user_info(url, user_agent)` returns the `subscription-userinfo`
header of a `HEAD` request. Failed requests are tried `retry_times` more
times before a `NETWORK_REQUEST` error is raised.

## Conversion requests and short links

`parse_convert_config(text)` decodes a base64 (standard or URL-safe) JSON
request into a `ConvertConfig` and checks it: at least one subscription or
proxy, subscriptions that are `http` URLs, and unique rule provider names.
Problems raise `ValueError` with a message starting `参数错误: `.

`ShortLinkStore(path)` keeps `ShortLink` records in SQLite (default
`data/clashsub.db`) with `create`, `find`, `exists`, `update` (fields
`config`, `password`, `last_request_time`), `delete` and `close`; it is also
a context manager.

## Errors

Failures are raised as `CommonError`, which carries an `ErrorCode`:

```python
from clashsub.errors import ErrorCode, is_error_code
from clashsub.fs import load_template

try:
    load_template("../secrets.yaml", "templates")
except Exception as err:
    assert is_error_code(err, ErrorCode.FILE_NOT_FOUND)
```

`load_template` only reads from inside the templates directory and refuses
paths that climb out of it.

## What it does not do

- There is no HTTP server and no command-line program; the package is a
  library to call from your own code.
- It does not parse share links (`ss://`, `vmess://` and the like) or
  base64 node lists; nodes must come as YAML configurations or mappings.
- There is no single call that runs a whole conversion; fetching, grouping,
  sorting, merging and rule handling are separate steps you combine.
- It does not decide which proxy types each `ClashType` supports;
  `add_proxies` takes the supported types as an argument.