import json

import pytest

from clashsub.config import Config, load_config
from clashsub.errors import CommonError, ErrorCode


def test_defaults_without_file(tmp_path):
    cfg = load_config([tmp_path], {})
    assert cfg == Config()
    assert cfg.address == "0.0.0.0:8011"
    assert cfg.log_level == "info"


def test_yaml_file_overrides_defaults(tmp_path):
    (tmp_path / "config.yaml").write_text("address: 127.0.0.1:9000\nCache_Expire: 30\n")
    cfg = load_config([tmp_path], {})
    assert cfg.address == "127.0.0.1:9000"
    assert cfg.cache_expire == 30
    assert cfg.short_link_length == Config().short_link_length


def test_json_file(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"log_level": "debug"}))
    assert load_config([tmp_path], {}).log_level == "debug"


def test_first_name_wins(tmp_path):
    (tmp_path / "config.yml").write_text("log_level: warn\n")
    (tmp_path / "clashsub.yaml").write_text("log_level: error\n")
    assert load_config([tmp_path], {}).log_level == "warn"


def test_second_name_used_when_first_missing(tmp_path):
    (tmp_path / "clashsub.yaml").write_text("log_level: error\n")
    assert load_config([tmp_path], {}).log_level == "error"


def test_invalid_file_is_skipped(tmp_path):
    (tmp_path / "config.yaml").write_text("address: [unclosed\n")
    (tmp_path / "config.json").write_text(json.dumps({"address": "from-json"}))
    assert load_config([tmp_path], {}).address == "from-json"


def test_search_path_order(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (first / "config.yaml").write_text("address: one\n")
    (second / "config.yaml").write_text("address: two\n")
    assert load_config([first, second], {}).address == "one"


def test_environment_overrides_file(tmp_path):
    (tmp_path / "config.yaml").write_text("cache_expire: 30\n")
    cfg = load_config([tmp_path], {"CLASHSUB_CACHE_EXPIRE": "10", "CLASHSUB_ADDRESS": ""})
    assert cfg.cache_expire == 10
    assert cfg.address == Config().address


def test_invalid_integer_in_environment(tmp_path):
    with pytest.raises(CommonError) as info:
        load_config([tmp_path], {"CLASHSUB_REQUEST_RETRY_TIMES": "many"})
    assert info.value.code is ErrorCode.CONFIG_INVALID


def test_invalid_type_in_file(tmp_path):
    (tmp_path / "config.yaml").write_text("address:\n  nested: true\n")
    with pytest.raises(CommonError) as info:
        load_config([tmp_path], {})
    assert info.value.code is ErrorCode.CONFIG_INVALID