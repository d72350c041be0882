"""Tests for the virtual file index, content cache and FileProvider."""

from pathlib import Path
from unittest.mock import patch

import pytest

from typesnap.config import ProviderConfig
from typesnap.diagnostics import ConstructionError, ResolutionError
from typesnap.files import (
    ContentCache,
    DiskOrigin,
    FileProvider,
    SyntheticOrigin,
    VirtualFileIndex,
)

_original_read_bytes = Path.read_bytes


def count_reads():
    """Patch Path.read_bytes, passing calls through to the real method."""
    return patch.object(Path, "read_bytes", autospec=True, side_effect=_original_read_bytes)


# =========================================================================
# VirtualFileIndex
# =========================================================================


def test_index_selects_only_declaration_files(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": "", "b.py": "", "notes.txt": "", "sub/c.pyi": ""})
    index = VirtualFileIndex.build([d])

    assert index.names() == ["a.pyi"]
    assert index.origin("a.pyi") == DiskOrigin(d)
    assert "sub" not in index
    assert "c.pyi" not in index


def test_index_skips_directories_with_declaration_suffix(make_stub_dir):
    d = make_stub_dir("stubs", {"pkg.pyi/inner.txt": ""})
    index = VirtualFileIndex.build([d])

    assert len(index) == 0


def test_index_later_directory_wins(make_stub_dir):
    first = make_stub_dir("first", {"shared.pyi": "x: int\n", "only_first.pyi": ""})
    second = make_stub_dir("second", {"shared.pyi": "x: str\n"})

    index = VirtualFileIndex.build([first, second])

    assert index.origin("shared.pyi") == DiskOrigin(second)
    assert index.origin("only_first.pyi") == DiskOrigin(first)


def test_index_custom_suffix(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": "", "b.py": ""})
    index = VirtualFileIndex.build([d], suffix=".py")

    assert index.names() == ["b.py"]


def test_index_missing_directory_is_fatal(tmp_path):
    with pytest.raises(ConstructionError) as exc_info:
        VirtualFileIndex.build([tmp_path / "missing"])

    assert "missing" in str(exc_info.value)
    assert exc_info.value.context is not None


def test_index_register_synthetic_overwrites(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": ""})
    index = VirtualFileIndex.build([d])

    index.register_synthetic("a.pyi")
    index.register_synthetic("fake.pyi")

    assert index.origin("a.pyi") == SyntheticOrigin()
    assert index.has("fake.pyi")
    assert not index.has("other.pyi")


# =========================================================================
# ContentCache
# =========================================================================


def test_cache_reads_each_file_once(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": "x: int\n"})
    cache = ContentCache(VirtualFileIndex.build([d]))

    with count_reads() as read:
        assert cache.get("a.pyi") == "x: int\n"
        assert cache.get("a.pyi") == "x: int\n"

    assert read.call_count == 1
    assert "a.pyi" in cache


def test_cache_keeps_empty_contents(make_stub_dir):
    d = make_stub_dir("stubs", {"empty.pyi": ""})
    cache = ContentCache(VirtualFileIndex.build([d]))

    with count_reads() as read:
        assert cache.get("empty.pyi") == ""
        assert cache.get("empty.pyi") == ""

    assert read.call_count == 1


def test_cache_put_overwrites():
    cache = ContentCache(VirtualFileIndex())
    cache.put("a.pyi", "one")
    cache.put("a.pyi", "two")

    assert cache.get("a.pyi") == "two"


def test_cache_miss_for_unknown_name():
    cache = ContentCache(VirtualFileIndex())

    with pytest.raises(ResolutionError):
        cache.load_miss("nope.pyi")


# =========================================================================
# FileProvider
# =========================================================================


def test_provider_is_loadable_file(provider):
    assert provider.is_loadable_file("user_events.pyi")
    assert provider.is_loadable_file("awesome_app.pyi")
    assert not provider.is_loadable_file("README.txt")
    assert not provider.is_loadable_file("never_registered.pyi")


def test_provider_loads_disk_file_lazily(stubs_dir):
    with count_reads() as read:
        provider = FileProvider(paths=[stubs_dir])
        assert read.call_count == 0

        first = provider.load_file("user_events.pyi")
        second = provider.load_file("user_events.pyi")

    assert read.call_count == 1
    assert first == second
    assert first == (stubs_dir / "user_events.pyi").read_text()


def test_provider_cached_contents_survive_disk_changes(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": "x: int\n"})
    provider = FileProvider(paths=[d])

    assert provider.load_file("a.pyi") == "x: int\n"
    (d / "a.pyi").write_text("x: str\n")

    assert provider.load_file("a.pyi") == "x: int\n"


def test_provider_later_directory_content_wins(make_stub_dir):
    first = make_stub_dir("first", {"shared.pyi": "x: int\n"})
    second = make_stub_dir("second", {"shared.pyi": "x: str\n"})

    provider = FileProvider(paths=[first, second])

    assert provider.load_file("shared.pyi") == "x: str\n"


def test_manually_added_file_needs_no_disk_reads():
    provider = FileProvider()

    with count_reads() as read:
        provider.manually_add_file("synthetic.pyi", "value: int\n")

        assert provider.is_loadable_file("synthetic.pyi")
        assert provider.load_file("synthetic.pyi") == "value: int\n"

    assert read.call_count == 0


def test_manually_added_file_overrides_disk_file(make_stub_dir):
    d = make_stub_dir("stubs", {"a.pyi": "x: int\n"})
    provider = FileProvider(paths=[d], files={"a.pyi": "x: bytes\n"})

    with count_reads() as read:
        assert provider.load_file("a.pyi") == "x: bytes\n"

    assert read.call_count == 0


def test_manually_added_empty_file():
    provider = FileProvider(files={"empty.pyi": ""})

    assert provider.is_loadable_file("empty.pyi")
    assert provider.load_file("empty.pyi") == ""


def test_load_unknown_file_fails_without_disk_access(provider):
    with count_reads() as read:
        with pytest.raises(ResolutionError) as exc_info:
            provider.load_file("user_event.pyi")

    assert read.call_count == 0
    message = str(exc_info.value)
    assert "No path to load user_event.pyi contents from" in message
    assert "'user_events.pyi'" in message


@pytest.mark.parametrize(
    "name, contents, error",
    [
        ("", "x: int\n", ValueError),
        (None, "x: int\n", ValueError),
        ("a.pyi", b"x: int\n", TypeError),
    ],
)
def test_manually_add_file_rejects_bad_arguments(name, contents, error):
    provider = FileProvider()

    with pytest.raises(error):
        provider.manually_add_file(name, contents)

    assert provider.names() == []


def test_provider_missing_search_path_is_fatal(tmp_path):
    with pytest.raises(ConstructionError):
        FileProvider(paths=[tmp_path / "nope"])


def test_fork_isolates_added_files(provider):
    forked = provider.fork()
    forked.manually_add_file("extra.pyi", "y: int\n")

    assert forked.is_loadable_file("extra.pyi")
    assert forked.is_loadable_file("awesome_app.pyi")
    assert not provider.is_loadable_file("extra.pyi")


def test_fork_shares_already_loaded_contents(stubs_dir):
    provider = FileProvider(paths=[stubs_dir])
    provider.load_file("user_events.pyi")

    with count_reads() as read:
        provider.fork().load_file("user_events.pyi")

    assert read.call_count == 0


def test_provider_from_config(tmp_path, stubs_dir):
    source = tmp_path / "lib.pyi"
    source.write_text("def f() -> int: ...\n")

    provider = FileProvider.from_config(
        ProviderConfig(search_paths=[str(stubs_dir)], files={"my_lib.pyi": str(source)})
    )

    assert provider.names() == ["my_lib.pyi", "user_events.pyi"]
    assert provider.load_file("my_lib.pyi") == "def f() -> int: ...\n"


def test_provider_from_config_missing_file(tmp_path):
    config = ProviderConfig(search_paths=[], files={"my_lib.pyi": str(tmp_path / "missing.pyi")})

    with pytest.raises(ConstructionError) as exc_info:
        FileProvider.from_config(config)

    assert "my_lib.pyi" in str(exc_info.value)
