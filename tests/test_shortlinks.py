import pytest

from clashsub.convert_config import ConvertConfig, RuleSpec
from clashsub.errors import CommonError, ErrorCode
from clashsub.groups import ClashType
from clashsub.shortlinks import ShortLink, ShortLinkStore


@pytest.fixture
def store(tmp_path):
    s = ShortLinkStore(tmp_path / "data" / "links.db")
    yield s
    s.close()


def make_link(link_id="abc123"):
    password = "password"
    config = ConvertConfig(
        clash_type=ClashType.META,
        subscriptions=["https://example.com/sub"],
        rules=[RuleSpec(rule="MATCH,DIRECT")],
    )
    return ShortLink(id=link_id, config=config, password=password, last_request_time=5)


def test_create_and_find(store):
    link = make_link()
    store.create(link)
    assert store.find(link.id) == link


def test_exists(store):
    store.create(make_link())
    assert store.exists("abc123") is True
    assert store.exists("missing") is False


def test_find_missing_raises(store):
    with pytest.raises(CommonError) as info:
        store.find("missing")
    assert info.value.code == ErrorCode.RECORD_NOT_FOUND


def test_duplicate_id_rejected(store):
    store.create(make_link())
    with pytest.raises(CommonError) as info:
        store.create(make_link())
    assert info.value.code == ErrorCode.DATABASE_QUERY


def test_update_columns(store):
    store.create(make_link())
    store.update("abc123", "last_request_time", 99)
    new_config = ConvertConfig(clash_type=ClashType.CLASH, proxies=["ss://x"])
    store.update("abc123", "config", new_config)
    found = store.find("abc123")
    assert found.last_request_time == 99
    assert found.config == new_config


def test_update_unknown_field_rejected(store):
    store.create(make_link())
    with pytest.raises(CommonError) as info:
        store.update("abc123", "id; DROP TABLE short_links", "x")
    assert info.value.code == ErrorCode.INVALID_INPUT
    assert store.exists("abc123") is True


def test_delete(store):
    store.create(make_link())
    store.delete("abc123")
    assert store.exists("abc123") is False
    store.delete("abc123")
    assert store.exists("abc123") is False


def test_persists_across_reopen(tmp_path):
    path = tmp_path / "links.db"
    link = make_link("keep")
    with ShortLinkStore(path) as first:
        first.create(link)
    with ShortLinkStore(path) as second:
        assert second.find("keep") == link