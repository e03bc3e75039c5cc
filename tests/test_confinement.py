from __future__ import annotations

import os

import pytest

from filebrowser.errors import AccessDenied, NotFound
from filebrowser.services.confinement import (
    ContainmentGuard,
    PathResolver,
    canonical_root,
    clean_relative_path,
    normalize_request_path,
)
from filebrowser.services.file_ops import FileOps


def test_normalize_request_path_converts_backslashes_and_strips_leading_slashes():
    assert normalize_request_path('\\\\docs\\nested\\a.txt') == 'docs/nested/a.txt'
    assert normalize_request_path('///docs/') == 'docs/'
    assert normalize_request_path(None) == ''


def test_clean_relative_path_collapses_dots_and_trailing_slashes():
    assert clean_relative_path('docs/./nested//') == 'docs/nested'
    assert clean_relative_path('/') == ''
    assert clean_relative_path('.') == ''


@pytest.mark.parametrize(
    'requested',
    [
        '../../etc/passwd',
        '..',
        'docs/../../outside/secret.txt',
        '..\\..\\outside\\secret.txt',
        '/../outside',
        'docs/nested/../../../outside',
    ],
)
def test_resolver_rejects_lexical_escape(nas_root, requested):
    with pytest.raises(AccessDenied):
        PathResolver(nas_root).resolve(requested)


def test_resolver_keeps_inner_dotdot_that_stays_inside(nas_root):
    resolved = PathResolver(nas_root).resolve('docs/nested/../Readme.MD')
    assert resolved == nas_root / 'docs' / 'Readme.MD'


def test_resolver_treats_absolute_looking_paths_as_relative(nas_root):
    assert PathResolver(nas_root).resolve('/etc/passwd') == nas_root / 'etc' / 'passwd'


def test_resolver_rejects_nul_byte(nas_root):
    with pytest.raises(AccessDenied):
        PathResolver(nas_root).resolve('docs/\x00evil')


@pytest.mark.parametrize(
    'requested',
    ['../outside/secret.txt', '/etc/passwd', '//etc/passwd', 'escape.txt', 'escape_dir/secret.txt', 'docs/../..'],
)
def test_safe_path_never_returns_a_path_outside_root(nas_root, requested):
    ops = FileOps(nas_root)
    try:
        resolved = ops.safe_path(requested)
    except (AccessDenied, NotFound):
        return
    assert resolved == nas_root or nas_root in resolved.parents


def test_guard_denies_symlink_pointing_outside_root(nas_root):
    guard = ContainmentGuard(nas_root)
    with pytest.raises(AccessDenied):
        guard.confine(nas_root / 'escape.txt')
    with pytest.raises(AccessDenied):
        guard.confine(nas_root / 'escape_dir' / 'secret.txt')


def test_guard_allows_symlink_that_stays_inside_root(nas_root):
    os.symlink(nas_root / 'docs', nas_root / 'docs_link')
    resolved = ContainmentGuard(nas_root).confine(nas_root / 'docs_link' / 'Readme.MD')
    assert resolved == nas_root / 'docs' / 'Readme.MD'


def test_guard_reports_missing_path_as_not_found(nas_root):
    with pytest.raises(NotFound):
        ContainmentGuard(nas_root).confine(nas_root / 'missing.txt')


def test_guard_reports_symlink_loop_as_not_found(nas_root):
    os.symlink(nas_root / 'loop_b', nas_root / 'loop_a')
    os.symlink(nas_root / 'loop_a', nas_root / 'loop_b')
    with pytest.raises(NotFound):
        ContainmentGuard(nas_root).confine(nas_root / 'loop_a')


def test_guard_accepts_root_itself(nas_root):
    assert ContainmentGuard(nas_root).confine(nas_root) == nas_root


def test_access_denied_message_does_not_leak_cause(nas_root):
    ops = FileOps(nas_root)
    messages = set()
    for requested in ('../outside/secret.txt', 'escape.txt', 'escape_dir'):
        with pytest.raises(AccessDenied) as exc:
            ops.safe_path(requested)
        messages.add(str(exc.value))
    assert messages == {'Access denied'}


def test_canonical_root_resolves_symlinked_root(tmp_path):
    real = tmp_path / 'real'
    real.mkdir()
    os.symlink(real, tmp_path / 'link')
    assert canonical_root(str(tmp_path / 'link')) == real.resolve()


def test_canonical_root_rejects_missing_empty_and_file(tmp_path):
    (tmp_path / 'file.txt').write_text('x')
    with pytest.raises(RuntimeError, match='ROOT_DIRECTORY is required'):
        canonical_root('')
    with pytest.raises(RuntimeError, match='does not exist'):
        canonical_root(str(tmp_path / 'missing'))
    with pytest.raises(RuntimeError, match='must be a directory'):
        canonical_root(str(tmp_path / 'file.txt'))
