import pytest

from clashsub.groups import (
    ProxyGroup,
    RuleProvider,
    sort_groups,
)


def test_group_round_trip():
    data = {
        "name": "Auto",
        "type": "url-test",
        "proxies": ["a", "b"],
        "url": "http://www.gstatic.com/generate_204",
        "interval": 300,
        "tolerance": 50,
        "lazy": True,
        "use": ["provider"],
        "hidden": True,
    }
    group = ProxyGroup.from_dict(data)
    assert group.interval == 300
    assert group.proxies == ["a", "b"]
    assert ProxyGroup.from_dict(group.to_dict()) == group
    assert group.to_dict() == {
        "type": "url-test",
        "name": "Auto",
        "proxies": ["a", "b"],
        "url": "http://www.gstatic.com/generate_204",
        "interval": 300,
        "tolerance": 50,
        "lazy": True,
        "use": ["provider"],
        "hidden": True,
    }


def test_empty_fields_omitted_but_lazy_kept():
    group = ProxyGroup(type="select", name="A")
    assert group.to_dict() == {"type": "select", "name": "A", "lazy": False}


def test_internal_fields_not_written():
    group = ProxyGroup(type="select", name="A", is_country_group=True, size=3)
    out = group.to_dict()
    assert "size" not in out
    assert "is_country_group" not in out
    assert ProxyGroup.from_dict(out).size == 0


def test_unknown_keys_ignored():
    group = ProxyGroup.from_dict({"name": "A", "type": "select", "bogus": 1})
    assert group == ProxyGroup(name="A", type="select")


def test_bad_value_raises():
    with pytest.raises(ValueError, match="interval"):
        ProxyGroup.from_dict({"name": "A", "interval": "soon"})


def test_non_mapping_raises():
    with pytest.raises(ValueError):
        ProxyGroup.from_dict(["not", "a", "mapping"])


def test_rule_provider_round_trip():
    provider = RuleProvider(type="http", behavior="domain", url="http://example.com/r.yaml",
                            path="./r.yaml", interval=3600)
    out = provider.to_dict()
    assert "format" not in out
    assert out["interval"] == 3600
    assert RuleProvider.from_dict(out) == provider


def _groups():
    return [
        ProxyGroup(name="b", size=2),
        ProxyGroup(name="A", size=1),
        ProxyGroup(name="c", size=2),
        ProxyGroup(name="a2", size=3),
    ]


def test_sort_by_size():
    names = [g.name for g in sort_groups(_groups(), "sizeasc")]
    assert names == ["A", "b", "c", "a2"]
    names_desc = [g.name for g in sort_groups(_groups(), "sizedesc")]
    assert names_desc == list(reversed(names))


def test_sort_by_name():
    names = [g.name for g in sort_groups(_groups(), "nameasc")]
    assert names == ["A", "a2", "b", "c"]
    assert [g.name for g in sort_groups(_groups(), "namedesc")] == list(reversed(names))


@pytest.mark.parametrize("mode", ["", "unknown"])
def test_default_sort_is_by_name(mode):
    assert sort_groups(_groups(), mode) == sort_groups(_groups(), "nameasc")


def test_sort_does_not_modify_input():
    groups = _groups()
    before = list(groups)
    sort_groups(groups, "sizeasc")
    assert groups == before