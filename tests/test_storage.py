from __future__ import annotations

import pytest

from mediaxfer.config import DEFAULT_CATEGORIES, Category, ServerConfig
from mediaxfer.errors import ClassificationError, DirectoryError
from mediaxfer.storage import MediaStore


@pytest.fixture
def store(tmp_path):
    return MediaStore(ServerConfig(), root=tmp_path)


@pytest.mark.parametrize(
    "name,category",
    [
        ("photo.png", "Images"),
        ("photo.JPG", "Images"),
        ("song.mp3", "Audios"),
        ("beat.mid", "Audios"),
        ("clip.flv", "Videos"),
        ("notes.txt", "Texts"),
        ("archive.tar.txt", "Texts"),
    ],
)
def test_classify(store, name, category):
    assert store.classify(name).name == category


def test_every_configured_extension_maps_to_its_category(store):
    for cat in DEFAULT_CATEGORIES:
        for ext in cat.extensions:
            assert store.classify("f" + ext) == cat


@pytest.mark.parametrize("name", ["setup.exe", "README", "", ".", "..", "../evil.txt", "dir/file.txt", "a\\b.txt", "a\x00b.txt"])
def test_classify_rejects(store, name):
    with pytest.raises(ClassificationError):
        store.classify(name)


def test_target_dir(store, tmp_path):
    assert store.target_dir(store.classify("a.txt")) == tmp_path / "Multimedia" / "Texts"


def test_ensure_directory_is_idempotent(store, tmp_path):
    target = tmp_path / "x" / "y" / "z"
    store.ensure_directory(target)
    store.ensure_directory(target)
    assert target.is_dir()


def test_ensure_directory_failure(store, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_bytes(b"")
    with pytest.raises(DirectoryError):
        store.ensure_directory(blocker / "sub")


def test_persist_overwrites(store, tmp_path):
    path = tmp_path / "a.txt"
    store.persist(path, b"first version")
    store.persist(path, b"2")
    assert path.read_bytes() == b"2"


def test_custom_categories(tmp_path):
    config = ServerConfig(categories=(Category("Docs", "docs", (".pdf",)),))
    store = MediaStore(config, root=tmp_path)
    assert store.classify("paper.pdf").path == "docs"
    with pytest.raises(ClassificationError):
        store.classify("notes.txt")
