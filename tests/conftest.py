import sys
import os
import shutil
import subprocess

import pytest

# Add project root to sys.path so tests can import top-level modules like 'correlate', 'normalize', 'stats', etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

requires_git = pytest.mark.skipif(shutil.which('git') is None, reason='git binary not available')


def _git(repo, *args, env=None):
    full_env = dict(os.environ)
    full_env.update({
        'GIT_CONFIG_NOSYSTEM': '1',
        'HOME': str(repo),
    })
    full_env.update(env or {})
    subprocess.run(['git', *args], cwd=str(repo), check=True, capture_output=True, env=full_env)


def commit_file(repo, name, content, message, author='Alice Example', when=1500000000):
    """Write ``content`` to ``name`` and commit it with a fixed author and date."""
    path = repo / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    date = f'@{when} +0000'
    _git(repo, 'add', name)
    _git(repo, 'commit', '-q', '-m', message, env={
        'GIT_AUTHOR_NAME': author,
        'GIT_AUTHOR_EMAIL': f"{author.split()[0].lower()}@example.com",
        'GIT_AUTHOR_DATE': date,
        'GIT_COMMITTER_NAME': author,
        'GIT_COMMITTER_EMAIL': f"{author.split()[0].lower()}@example.com",
        'GIT_COMMITTER_DATE': date,
    })


@pytest.fixture
def git_repo(tmp_path):
    """An empty git repository in a temporary directory."""
    repo = tmp_path / 'repo'
    repo.mkdir()
    _git(repo, 'init', '-q')
    return repo
