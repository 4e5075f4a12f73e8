"""
Package reader for PPTX files.

Handles reading a zip container into an ordered collection of member
byte-streams and writing it back atomically.
"""

import os
import tempfile
import zipfile
import zlib
from collections import OrderedDict
from io import BytesIO
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Union, BinaryIO
import logging

from ..exceptions import ArchiveError, MissingMember

logger = logging.getLogger(__name__)

XML_SUFFIXES = (".xml", ".rels")


class Archive:
    """
    Ordered mapping of member path to bytes.

    Keeps the original ``ZipInfo`` of every member so that writing the
    archive back preserves member order, compression and timestamps.
    """

    def __init__(self, members: "OrderedDict[str, bytes]",
                 infos: Optional[Dict[str, zipfile.ZipInfo]] = None,
                 source: Optional[Path] = None, comment: bytes = b""):
        self._members = members
        self._infos = infos or {}
        self.source = source
        self.comment = comment

    @classmethod
    def open(cls, path: Union[str, Path]) -> "Archive":
        """
        Open a PPTX archive from disk.

        Args:
            path: Path to the archive

        Returns:
            Archive with every member loaded

        Raises:
            FileNotFoundError: if the path does not exist
            ArchiveError: if the file is not a valid zip or a member is corrupt
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"PPTX file not found: {path}")

        with open(path, "rb") as stream:
            archive = cls._read(stream, str(path))
        archive.source = path
        logger.info(f"Opened PPTX package: {path} ({len(archive)} members)")
        return archive

    @classmethod
    def from_bytes(cls, data: bytes) -> "Archive":
        """Open an archive held in memory."""
        return cls._read(BytesIO(data), "<bytes>")

    @classmethod
    def _read(cls, stream: BinaryIO, label: str) -> "Archive":
        members: "OrderedDict[str, bytes]" = OrderedDict()
        infos: Dict[str, zipfile.ZipInfo] = {}
        try:
            with zipfile.ZipFile(stream, "r") as zip_file:
                for info in zip_file.infolist():
                    if info.is_dir():
                        continue
                    if info.filename in members:
                        raise ArchiveError(f"Duplicate member in {label}", info.filename)
                    data = zip_file.read(info)
                    if len(data) != info.file_size:
                        raise ArchiveError(
                            "Member size mismatch",
                            f"{info.filename}: declared {info.file_size}, read {len(data)}",
                        )
                    members[info.filename] = data
                    infos[info.filename] = info
                comment = zip_file.comment
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as exc:
            raise ArchiveError(f"Unreadable archive {label}", str(exc)) from exc

        logger.debug(f"Read {len(members)} members from {label}")
        return cls(members, infos, comment=comment)

    def __contains__(self, path: str) -> bool:
        return path in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def names(self) -> List[str]:
        """Member paths in archive order."""
        return list(self._members)

    def xml_names(self) -> List[str]:
        """Member paths that hold XML parts or relationship descriptors."""
        return [name for name in self._members if name.endswith(XML_SUFFIXES)]

    def info(self, path: str) -> Optional[zipfile.ZipInfo]:
        return self._infos.get(path)

    def member_bytes(self, path: str) -> bytes:
        """
        Return the bytes of a member.

        Raises:
            MissingMember: if the path is not in the archive
        """
        try:
            return self._members[path]
        except KeyError:
            raise MissingMember(path) from None

    def to_bytes(self, overrides: Optional[Mapping[str, bytes]] = None) -> bytes:
        """Serialize the archive to bytes, replacing members named in ``overrides``."""
        buffer = BytesIO()
        self._write_zip(buffer, overrides or {})
        return buffer.getvalue()

    def write(self, path: Union[str, Path], overrides: Optional[Mapping[str, bytes]] = None) -> Path:
        """
        Write the archive to ``path`` atomically.

        The archive is written to a temporary file beside the target and moved
        into place only after it has been fully flushed, so a partially written
        result is never observed.

        Args:
            path: Output path
            overrides: Replacement bytes for re-serialized members

        Returns:
            The output path
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        try:
            with os.fdopen(fd, "wb") as stream:
                self._write_zip(stream, overrides or {})
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(tmp_name, target)
        except BaseException as exc:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            if isinstance(exc, (OSError, zipfile.LargeZipFile)):
                raise ArchiveError(f"Failed to write archive {target}", str(exc)) from exc
            raise

        logger.info(f"Wrote PPTX package: {target} ({len(overrides or {})} parts re-serialized)")
        return target

    def _write_zip(self, stream: BinaryIO, overrides: Mapping[str, bytes]) -> None:
        unknown = set(overrides) - set(self._members)
        if unknown:
            raise MissingMember(sorted(unknown)[0])

        with zipfile.ZipFile(stream, "w") as zip_file:
            for name, data in self._members.items():
                payload = overrides.get(name, data)
                zip_file.writestr(self._clone_info(name), payload)
            zip_file.comment = self.comment

    def _clone_info(self, name: str) -> zipfile.ZipInfo:
        original = self._infos.get(name)
        if original is None:
            info = zipfile.ZipInfo(name)
            info.compress_type = zipfile.ZIP_DEFLATED
            return info
        info = zipfile.ZipInfo(name, date_time=original.date_time)
        info.compress_type = original.compress_type
        info.external_attr = original.external_attr
        info.create_system = original.create_system
        info.comment = original.comment
        return info


def open_archive(path: Union[str, Path]) -> Archive:
    """Open a PPTX archive; see :meth:`Archive.open`."""
    return Archive.open(path)


def member_bytes(archive: Archive, path: str) -> bytes:
    """Return member bytes; raises :class:`MissingMember`."""
    return archive.member_bytes(path)


def write_archive(archive: Archive, path: Union[str, Path],
                  overrides: Optional[Mapping[str, bytes]] = None) -> Path:
    """Write an archive atomically; see :meth:`Archive.write`."""
    return archive.write(path, overrides)
