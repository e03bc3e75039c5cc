"""Failure kinds shared by the confinement, listing and download services.

Messages are deliberately generic: callers may surface ``str(exc)`` to
clients, so no real filesystem path ever goes into one.
"""

from __future__ import annotations


class FileBrowserError(Exception):
    pass


class AccessDenied(FileBrowserError):
    def __init__(self, message: str = 'Access denied'):
        super().__init__(message)


class NotFound(FileBrowserError):
    def __init__(self, message: str = 'Path not found'):
        super().__init__(message)


class InvalidOperation(FileBrowserError):
    pass


class RangeNotSatisfiable(InvalidOperation):
    def __init__(self, total_size: int):
        super().__init__('Requested range not satisfiable')
        self.total_size = total_size
