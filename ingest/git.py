"""
Git ingestion clients: marker scan via ``git grep`` and line attribution via ``git blame``.
Both run git as an asyncio subprocess and expose results as async iterators.
"""
import asyncio
import logging
from typing import AsyncIterator, Dict, List, Optional, Sequence

from errors import TransportError
from normalize.models import RawComment, Author, LineAttribution, CommitMetadata

logger = logging.getLogger(__name__)

# git grep exits with 1 when nothing matched
GREP_OK_CODES = (0, 1)
STREAM_LIMIT = 1024 * 1024


async def stream_git(repo_path: str, args: Sequence[str], ok_codes: Sequence[int] = (0,)) -> AsyncIterator[bytes]:
    """Run ``git <args>`` in ``repo_path`` and yield its stdout line by line.

    Raises TransportError if git cannot be started or exits with a code outside ``ok_codes``.
    The subprocess is killed if the consumer stops early.
    """
    source = f"git {args[0]}" if args else "git"
    try:
        proc = await asyncio.create_subprocess_exec(
            'git', *args,
            cwd=repo_path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
    except OSError as exc:
        raise TransportError(source, str(exc))

    stderr_task = asyncio.ensure_future(proc.stderr.read())
    try:
        while True:
            line = await proc.stdout.readline()
            if not line:
                break
            yield line
        returncode = await proc.wait()
        stderr = await stderr_task
    finally:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        if not stderr_task.done():
            stderr_task.cancel()

    if returncode not in ok_codes:
        detail = stderr.decode('utf-8', errors='replace').strip() or f"exit status {returncode}"
        raise TransportError(source, detail)


def parse_grep_record(record: bytes, revision: str) -> Optional[RawComment]:
    """Parse one ``git grep -n -z`` record ``<rev>:<path>\\0<line>\\0<text>``.

    Returns None (and logs) for records that do not have that shape.
    """
    record = record.rstrip(b'\n')
    if not record:
        return None
    parts = record.split(b'\0', 2)
    if len(parts) != 3:
        logger.warning("Skipping unparsable grep record: %r", record[:200])
        return None
    path, line_no, text = (p.decode('utf-8', errors='replace') for p in parts)
    prefix = f"{revision}:"
    if path.startswith(prefix):
        path = path[len(prefix):]
    try:
        line = int(line_no)
    except ValueError:
        logger.warning("Skipping grep record with bad line number %r in %s", line_no, path)
        return None
    return RawComment(file=path, line=line, text=text)


def _split_mail(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().lstrip('<').rstrip('>')


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def _person(info: Dict[str, str], role: str) -> Optional[Author]:
    name = info.get(role)
    if name is None:
        return None
    return Author(
        name=name,
        mail=_split_mail(info.get(f'{role}-mail')),
        timestamp=_to_int(info.get(f'{role}-time')),
        timezone=info.get(f'{role}-tz'),
    )


def _commit_event(commit_hash: str, info: Dict[str, str]) -> CommitMetadata:
    return CommitMetadata(
        commit_hash=commit_hash,
        author=_person(info, 'author'),
        committer=_person(info, 'committer'),
        summary=info.get('summary'),
    )


def _line_event(group: Dict[str, object], info: Dict[str, str], content: str) -> LineAttribution:
    return LineAttribution(
        commit_hash=group['hash'],
        filename=info.get('filename'),
        final_line=group['final_line'],
        original_line=group['original_line'],
        summary=info.get('summary'),
        content=content,
    )


def _parse_group_header(line: str) -> Optional[Dict[str, object]]:
    tokens = line.split(' ')
    if len(tokens) < 3:
        return None
    commit_hash = tokens[0]
    original_line = _to_int(tokens[1])
    final_line = _to_int(tokens[2])
    if len(commit_hash) < 40 or original_line is None or final_line is None:
        return None
    return {'hash': commit_hash, 'original_line': original_line, 'final_line': final_line}


def parse_blame_porcelain(text: str) -> List[object]:
    """Turn ``git blame --porcelain`` output into attribution events.

    Each blamed line yields a CommitMetadata followed by a LineAttribution. Commit headers
    are only printed the first time a commit appears, so they are remembered per hash.
    """
    events: List[object] = []
    commits: Dict[str, Dict[str, str]] = {}
    group: Optional[Dict[str, object]] = None

    for line in text.split('\n'):
        if line.startswith('\t'):
            if group is None:
                logger.warning("Blame content line without header: %r", line[:200])
                continue
            info = commits.setdefault(group['hash'], {})
            events.append(_commit_event(group['hash'], info))
            events.append(_line_event(group, info, line[1:]))
            group = None
            continue
        if not line:
            continue
        if group is None:
            group = _parse_group_header(line)
            if group is None:
                logger.warning("Unexpected blame header: %r", line[:200])
            continue
        key, _, value = line.partition(' ')
        commits.setdefault(group['hash'], {})[key] = value
    return events


class GitGrepScanner:
    """Find marker hits in a repository revision with ``git grep``."""

    def __init__(self, repo_path: str):
        self.repo_path = repo_path

    async def scan(self, revision: str, pattern: str) -> AsyncIterator[RawComment]:
        args = ['grep', '-n', '-z', '-I', '-E', '-e', pattern, revision]
        async for record in stream_git(self.repo_path, args, ok_codes=GREP_OK_CODES):
            raw = parse_grep_record(record, revision)
            if raw is not None:
                yield raw


class GitBlameAttributor:
    """Attribute single lines of a revision to commits with ``git blame --porcelain``."""

    def __init__(self, repo_path: str, revision: str = 'HEAD'):
        self.repo_path = repo_path
        self.revision = revision

    async def blame(self, file: str, line: int) -> AsyncIterator[object]:
        args = ['blame', '--porcelain', '-L', f'{line},{line}', self.revision, '--', file]
        chunks = []
        async for chunk in stream_git(self.repo_path, args):
            chunks.append(chunk)
        output = b''.join(chunks).decode('utf-8', errors='replace')
        for event in parse_blame_porcelain(output):
            yield event
