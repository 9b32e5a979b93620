import io
import os
import tarfile
import zipfile

import pytest

from conftest import write_tar_gz, write_zip
from distmat.modules.dist.domain import ArchiveSafetyError, ExtractionError, NoSuchArchiverError
from distmat.modules.dist.unpack import ArchiverManager, TarUnArchiver, ZipUnArchiver


@pytest.mark.parametrize(
    "name, expected",
    [
        ("robovm-dist-0.0.2.tar.gz", TarUnArchiver),
        ("ROBOVM-DIST.TGZ", TarUnArchiver),
        ("dist.tar", TarUnArchiver),
        ("dist.tar.xz", TarUnArchiver),
        ("dist.zip", ZipUnArchiver),
        ("dist.jar", ZipUnArchiver),
    ],
)
def test_unarchiver_selected_by_suffix(tmp_path, name, expected):
    assert isinstance(ArchiverManager().get_unarchiver(tmp_path / name), expected)


def test_tar_gz_picks_gzip_mode(tmp_path):
    unarchiver = ArchiverManager().get_unarchiver(tmp_path / "dist.tar.gz")

    assert unarchiver.mode == "r:gz"


def test_unknown_suffix_raises(tmp_path):
    with pytest.raises(NoSuchArchiverError):
        ArchiverManager().get_unarchiver(tmp_path / "dist.rar")


def test_register_custom_suffix(tmp_path):
    manager = ArchiverManager()
    manager.register("dist", ZipUnArchiver)

    assert isinstance(manager.get_unarchiver(tmp_path / "bundle.dist"), ZipUnArchiver)


def test_tar_extraction_keeps_content_and_mode(tmp_path):
    archive = write_tar_gz(tmp_path / "dist.tar.gz", {"bin/tool": "run", "lib/a.jar": "jar"})

    TarUnArchiver("r:gz").extract(archive, tmp_path / "out")

    assert (tmp_path / "out" / "bin" / "tool").read_text() == "run"
    if os.name != "nt":
        assert os.access(tmp_path / "out" / "bin" / "tool", os.X_OK)


def test_zip_extraction_applies_unix_permissions(tmp_path):
    archive = tmp_path / "dist.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        info = zipfile.ZipInfo("bin/tool")
        info.external_attr = 0o755 << 16
        zf.writestr(info, "run")
        zf.writestr("docs/", "")

    ZipUnArchiver().extract(archive, tmp_path / "out")

    assert (tmp_path / "out" / "bin" / "tool").read_text() == "run"
    assert (tmp_path / "out" / "docs").is_dir()
    if os.name != "nt":
        assert os.access(tmp_path / "out" / "bin" / "tool", os.X_OK)


def test_zip_entry_escaping_destination_is_refused(tmp_path):
    archive = write_zip(tmp_path / "evil.zip", {"../escape.txt": "boom"})

    with pytest.raises(ArchiveSafetyError):
        ZipUnArchiver().extract(archive, tmp_path / "out")

    assert not (tmp_path / "escape.txt").exists()


def test_tar_absolute_entry_is_refused(tmp_path):
    archive = tmp_path / "evil.tar"
    with tarfile.open(archive, "w") as tf:
        info = tarfile.TarInfo("/etc/evil")
        info.size = 1
        tf.addfile(info, io.BytesIO(b"x"))

    with pytest.raises(ArchiveSafetyError):
        TarUnArchiver("r:").extract(archive, tmp_path / "out")


def test_tar_symlink_pointing_outside_is_refused(tmp_path):
    archive = tmp_path / "evil.tar"
    with tarfile.open(archive, "w") as tf:
        info = tarfile.TarInfo("lib/link")
        info.type = tarfile.SYMTYPE
        info.linkname = "../../outside"
        tf.addfile(info)

    with pytest.raises(ArchiveSafetyError):
        TarUnArchiver("r:").extract(archive, tmp_path / "out")


def test_missing_archive_raises_extraction_error(tmp_path):
    with pytest.raises(ExtractionError):
        TarUnArchiver().extract(tmp_path / "missing.tar.gz", tmp_path / "out")


def test_corrupt_archive_raises_extraction_error(tmp_path):
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"definitely not a zip")

    with pytest.raises(ExtractionError) as excinfo:
        ZipUnArchiver().extract(archive, tmp_path / "out")

    assert excinfo.value.__cause__ is not None


def test_tar_gz_with_bad_crc_raises_extraction_error(tmp_path):
    archive = write_tar_gz(tmp_path / "dist.tar.gz", {"bin/robovm": "x" * 4096}, root="robovm-0.0.2")
    data = bytearray(archive.read_bytes())
    data[-8] ^= 0xFF
    archive.write_bytes(bytes(data))

    with pytest.raises(ExtractionError):
        ArchiverManager().get_unarchiver(archive).extract(archive, tmp_path / "out")


def test_tar_xz_with_bad_footer_raises_extraction_error(tmp_path):
    archive = tmp_path / "dist.tar.xz"
    payload = b"x" * 4096
    with tarfile.open(archive, "w:xz") as tf:
        info = tarfile.TarInfo("robovm-0.0.2/bin/robovm")
        info.size = len(payload)
        tf.addfile(info, io.BytesIO(payload))
    data = bytearray(archive.read_bytes())
    data[-1] ^= 0xFF
    archive.write_bytes(bytes(data))

    with pytest.raises(ExtractionError):
        ArchiverManager().get_unarchiver(archive).extract(archive, tmp_path / "out")
