"""
Configuration for a pending-comment run.

Values are resolved in order: built-in defaults, an optional YAML file given
by path (config/pending.yaml is a sample), environment variables, then
explicit overrides (e.g. from CLI flags).

- PENDING_MARKERS: comma separated marker list
- PENDING_REVISION: revision to scan and blame
- PENDING_TIMEOUT: float seconds bounding the whole run
"""
import os
import re
import subprocess
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Dict, Any

import yaml

from errors import ConfigurationError

DEFAULT_MARKERS = ('TESTME', 'DOCME', 'FIXME', 'TODO')
DEFAULT_REVISION = 'HEAD'

# POSIX extended regex metacharacters
_ERE_SPECIAL = re.compile(r'([.\[\]()*+?{}|^$\\])')


def ere_escape(text: str) -> str:
    return _ERE_SPECIAL.sub(r'\\\1', text)


@dataclass(frozen=True)
class PendingConfig:
    repo_path: str = '.'
    markers: Tuple[str, ...] = DEFAULT_MARKERS
    revision: str = DEFAULT_REVISION
    timeout: Optional[float] = None

    @property
    def marker_pattern(self) -> str:
        """Extended-regex alternation of the markers, e.g. ``(TODO)|(FIXME)``.

        Markers are matched literally, the same way the stats count them.
        """
        return '|'.join(f'({ere_escape(m)})' for m in self.markers)


def _parse_markers(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(f"markers must be a list or comma separated string, got {type(value).__name__}")
    markers = tuple(str(m).strip() for m in items if str(m).strip())
    if not markers:
        raise ConfigurationError("at least one marker is required")
    return markers


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"timeout must be a number, got {value!r}")
    if timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {timeout}")
    return timeout


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}")
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in config file {path}: {exc}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return data


def _env_values() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if os.getenv('PENDING_MARKERS'):
        values['markers'] = os.getenv('PENDING_MARKERS')
    if os.getenv('PENDING_REVISION'):
        values['revision'] = os.getenv('PENDING_REVISION')
    if os.getenv('PENDING_TIMEOUT'):
        values['timeout'] = os.getenv('PENDING_TIMEOUT')
    return values


def _apply(config: PendingConfig, values: Dict[str, Any]) -> PendingConfig:
    changes: Dict[str, Any] = {}
    if values.get('repo_path'):
        changes['repo_path'] = str(values['repo_path'])
    if values.get('markers') is not None:
        changes['markers'] = _parse_markers(values['markers'])
    if values.get('revision'):
        changes['revision'] = str(values['revision'])
    if 'timeout' in values and values['timeout'] is not None:
        changes['timeout'] = _parse_timeout(values['timeout'])
    return replace(config, **changes) if changes else config


def load_config(path: Optional[str] = None, **overrides) -> PendingConfig:
    """Build a PendingConfig from defaults, YAML, environment and ``overrides``.

    Raises ConfigurationError for unreadable files or invalid values.
    """
    config = PendingConfig()
    if path:
        config = _apply(config, _read_yaml(path))
    config = _apply(config, _env_values())
    return _apply(config, overrides)


def validate_repository(path: str) -> str:
    """Return the absolute path of ``path`` if it is inside a git work tree, else raise ConfigurationError."""
    repo_path = os.path.abspath(path)
    if not os.path.isdir(repo_path):
        raise ConfigurationError(f"{repo_path} is not a directory")
    try:
        proc = subprocess.run(
            ['git', 'rev-parse', '--is-inside-work-tree'],
            cwd=repo_path,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise ConfigurationError(f"git is not available: {exc}")
    if proc.returncode != 0 or proc.stdout.strip() != 'true':
        raise ConfigurationError("The command must be run inside a git repository")
    return repo_path


def validate_revision(repo_path: str, revision: str) -> str:
    """Raise ConfigurationError unless ``revision`` names a commit in the repository at ``repo_path``."""
    try:
        proc = subprocess.run(
            ['git', 'rev-parse', '--verify', '--quiet', f'{revision}^{{commit}}'],
            cwd=repo_path,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise ConfigurationError(f"git is not available: {exc}")
    if proc.returncode != 0:
        raise ConfigurationError(f"Unknown revision: {revision}")
    return revision
