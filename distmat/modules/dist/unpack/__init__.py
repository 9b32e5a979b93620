from .archivers import ArchiverManager, TarUnArchiver, UnArchiver, ZipUnArchiver

__all__ = ["ArchiverManager", "TarUnArchiver", "UnArchiver", "ZipUnArchiver"]
