"""Resolution of untrusted request paths to locations inside the root.

``PathResolver`` works on strings only. ``ContainmentGuard`` is the one
place that canonicalizes a path against the real filesystem; anything that
is about to be stat'd, listed or opened goes through ``confine`` first,
including every child of a listed directory.
"""

from __future__ import annotations

import errno
import os
import posixpath
from pathlib import Path

from ..errors import AccessDenied, NotFound


def normalize_request_path(requested_path: str | None) -> str:
    """Convert backslashes to slashes and strip leading slashes."""
    return (requested_path or '').replace('\\', '/').lstrip('/')


def clean_relative_path(requested_path: str | None) -> str:
    """Normalized POSIX form used for ``currentPath`` and entry paths.

    Collapses ``.`` segments, duplicate and trailing slashes. Returns ``''``
    for the root. Callers must already have rejected escaping ``..``.
    """
    rel = normalize_request_path(requested_path)
    if not rel:
        return ''
    cleaned = posixpath.normpath(rel)
    return '' if cleaned == '.' else cleaned


class PathResolver:
    def __init__(self, root: Path):
        self.root = root

    def resolve(self, requested_path: str | None) -> Path:
        rel = normalize_request_path(requested_path)
        if '\x00' in rel:
            raise AccessDenied()

        root = str(self.root)
        candidate = os.path.normpath(os.path.join(root, rel))
        if candidate != root and not candidate.startswith(root.rstrip(os.sep) + os.sep):
            raise AccessDenied()
        return Path(candidate)


class ContainmentGuard:
    def __init__(self, root: Path):
        self.root = root

    def is_contained(self, target: Path) -> bool:
        return target == self.root or self.root in target.parents

    def confine(self, candidate: Path) -> Path:
        try:
            resolved = candidate.resolve(strict=True)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound() from exc
        except RuntimeError as exc:
            # symlink loop on interpreters that report it this way
            raise NotFound() from exc
        except OSError as exc:
            if exc.errno == errno.ELOOP:
                raise NotFound() from exc
            raise

        if not self.is_contained(resolved):
            raise AccessDenied()
        return resolved


def canonical_root(root_directory: str) -> Path:
    """Canonicalize and check the configured root. Used once at startup."""
    if not root_directory:
        raise RuntimeError('ROOT_DIRECTORY is required. Set it in the environment or .env')

    try:
        root = Path(root_directory).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise RuntimeError(f'ROOT_DIRECTORY does not exist: {root_directory}') from exc

    if not root.is_dir():
        raise RuntimeError(f'ROOT_DIRECTORY must be a directory: {root}')
    if not os.access(root, os.R_OK | os.X_OK):
        raise RuntimeError(f'ROOT_DIRECTORY is not readable: {root}')
    return root
