from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

from filebrowser import main


@pytest.fixture
def nas_root(tmp_path):
    """Root with a small tree plus a directory outside it for escape attempts."""
    root = (tmp_path / 'root').resolve()
    outside = (tmp_path / 'outside').resolve()
    root.mkdir()
    outside.mkdir()

    (outside / 'secret.txt').write_text('top secret')
    (root / 'docs').mkdir()
    (root / 'docs' / 'Readme.MD').write_text('# readme')
    (root / 'docs' / 'nested').mkdir()
    (root / 'data.bin').write_bytes(bytes(i % 256 for i in range(500)))
    (root / 'alpha.txt').write_text('alpha')
    os.symlink(outside / 'secret.txt', root / 'escape.txt')
    os.symlink(outside, root / 'escape_dir')
    return root


@pytest.fixture
def client(nas_root, monkeypatch):
    monkeypatch.setattr(main.settings, 'root_directory', str(nas_root))
    with TestClient(main.app) as c:
        yield c
