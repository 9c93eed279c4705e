import pytest

from clashsub.errors import CommonError, ErrorCode
from clashsub.fs import load_template, make_dir, make_essential_dirs


def test_make_dir_creates_nested(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    result = make_dir(target)
    assert result == target
    assert target.is_dir()


def test_make_dir_is_idempotent(tmp_path):
    target = tmp_path / "x"
    make_dir(target)
    (target / "keep.txt").write_text("kept")
    make_dir(target)
    assert (target / "keep.txt").read_text() == "kept"


def test_make_essential_dirs(tmp_path):
    created = make_essential_dirs(tmp_path)
    assert sorted(p.name for p in created) == ["data", "logs", "subs"]
    assert all((tmp_path / name).is_dir() for name in ("subs", "logs", "data"))


def test_make_essential_dirs_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(CommonError) as info:
        make_essential_dirs(blocker)
    assert info.value.code is ErrorCode.DIR_CREATION
    assert "subs" in info.value.message


def test_load_template_reads_file(tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "t.yaml").write_bytes(b"proxies: []\n")
    assert load_template("t.yaml", templates) == b"proxies: []\n"


def test_load_template_missing(tmp_path):
    with pytest.raises(CommonError) as info:
        load_template("missing.yaml", tmp_path)
    assert info.value.code is ErrorCode.FILE_NOT_FOUND


@pytest.mark.parametrize("name", ["../secret.yaml", "a/../../secret.yaml", "..hidden"])
def test_load_template_rejects_parent(tmp_path, name):
    templates = tmp_path / "templates"
    templates.mkdir()
    (tmp_path / "secret.yaml").write_text("x")
    with pytest.raises(CommonError) as info:
        load_template(name, templates)
    assert info.value.code is ErrorCode.FILE_NOT_FOUND


def test_load_template_absolute_stays_inside(tmp_path):
    templates = tmp_path / "templates"
    (templates / "etc").mkdir(parents=True)
    (templates / "etc" / "conf.yaml").write_bytes(b"inside")
    assert load_template("/etc/conf.yaml", templates) == b"inside"


def test_load_template_inner_dotdot_resolved(tmp_path):
    templates = tmp_path / "templates"
    (templates / "sub").mkdir(parents=True)
    (templates / "t.yaml").write_bytes(b"top")
    assert load_template("sub/../t.yaml", templates) == b"top"