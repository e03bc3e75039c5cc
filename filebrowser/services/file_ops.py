from __future__ import annotations

import logging
import os
import posixpath
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from ..errors import AccessDenied, NotFound
from ..schemas import DirectoryListing, FileEntry, FileIdentity
from .confinement import ContainmentGuard, PathResolver, clean_relative_path

logger = logging.getLogger(__name__)


def sort_key(entry: FileEntry) -> tuple[bool, str, str]:
    return (not entry.is_directory, entry.name.casefold(), entry.name)


def parent_of(rel: str) -> str:
    return '/'.join(rel.split('/')[:-1]) if rel else ''


class FileOps:
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.resolver = PathResolver(self.root)
        self.guard = ContainmentGuard(self.root)

    def safe_path(self, rel: str | None) -> Path:
        return self.guard.confine(self.resolver.resolve(rel))

    def browse(self, rel: str | None) -> Union[DirectoryListing, FileIdentity]:
        target = self.safe_path(rel)
        clean = clean_relative_path(rel)
        try:
            st = target.stat()
        except FileNotFoundError as exc:
            raise NotFound() from exc

        if stat.S_ISDIR(st.st_mode):
            return self.list_dir(target, clean)
        return FileIdentity(path=clean, name=target.name)

    def list_dir(self, target: Path, rel: str) -> DirectoryListing:
        # reading the directory itself is not isolated: failures here fail the call
        with os.scandir(target) as it:
            names = [entry.name for entry in it]

        items = [item for item in (self._entry(target, rel, name) for name in names) if item is not None]
        items.sort(key=sort_key)
        return DirectoryListing(current_path=rel or '/', parent_path=parent_of(rel), items=items)

    def _entry(self, directory: Path, rel: str, name: str) -> FileEntry | None:
        try:
            name.encode('utf-8')
        except UnicodeEncodeError:
            # undecodable on-disk bytes come back as lone surrogates
            logger.warning('Skipping entry with non UTF-8 name %r in %r', name, rel or '/')
            return None

        try:
            real = self.guard.confine(directory / name)
            st = real.stat()
        except (AccessDenied, NotFound, FileNotFoundError):
            return None
        except OSError as exc:
            logger.warning('Skipping unreadable entry %r in %r: %s', name, rel or '/', exc.strerror or exc)
            return None

        is_dir = stat.S_ISDIR(st.st_mode)
        return FileEntry(
            name=name,
            path=posixpath.join(rel, name),
            is_directory=is_dir,
            size=0 if is_dir else st.st_size,
            modified_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            extension=os.path.splitext(name)[1].lower(),
        )
