import io
import os

import pytest

from library_api.errors import InvalidUpload
from library_api.storage import CoverStorage, sanitize_filename


@pytest.mark.parametrize("raw, clean", [
    ("cover.png", "cover.png"),
    ("Café Menu (1).PNG", "cafe-menu-1.png"),
    ("--weird__name!!.JpG", "weird__name.jpg"),
    ("../../etc/passwd.gif", "passwd.gif"),
    ("Dune  2nd ed.v2.webp", "dune-2nd-ed.v2.webp"),
])
def test_sanitize_filename(raw, clean):
    assert sanitize_filename(raw) == clean


def test_save_writes_under_covers(tmp_path):
    storage = CoverStorage(str(tmp_path), max_size=1024)

    url = storage.save(3, "My Cover.PNG", io.BytesIO(b"\x89PNG fake"))

    assert url.startswith("/uploads/covers/3-")
    assert url.endswith("-my-cover.png")
    stored = os.path.join(str(tmp_path), "covers", url.rsplit("/", 1)[1])
    with open(stored, "rb") as fh:
        assert fh.read() == b"\x89PNG fake"


def test_save_rejects_non_images(tmp_path):
    storage = CoverStorage(str(tmp_path), max_size=1024)
    with pytest.raises(InvalidUpload):
        storage.save(1, "notes.txt", io.BytesIO(b"hello"))


def test_save_rejects_missing_filename(tmp_path):
    storage = CoverStorage(str(tmp_path), max_size=1024)
    with pytest.raises(InvalidUpload):
        storage.save(1, "", io.BytesIO(b"hello"))


def test_save_rejects_oversized_files_and_cleans_up(tmp_path):
    storage = CoverStorage(str(tmp_path), max_size=10)
    with pytest.raises(InvalidUpload):
        storage.save(1, "big.jpg", io.BytesIO(b"x" * 11))
    assert os.listdir(os.path.join(str(tmp_path), "covers")) == []
