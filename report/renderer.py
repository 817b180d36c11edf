"""
Report renderer: draw correlated comments as text (one-line or detailed), Markdown, CSV, JSON or HTML.
HTML and Markdown are rendered with the Jinja2 templates in report/templates.
"""

from typing import Optional, List, Dict, Any, Mapping, Iterable
import os
import time
import json
import io
import csv

from jinja2 import Environment, FileSystemLoader, select_autoescape

from correlate.models import CorrelatedComment
from settings import DEFAULT_MARKERS
from stats.metrics import summarize, CommentStats

POINTER = '❯'

# (upper bound in seconds, unit seconds or None for a fixed phrase, phrase)
_HUMANIZE_STEPS = [
    (45, None, 'a few seconds'),
    (90, None, 'a minute'),
    (45 * 60, 60, '{} minutes'),
    (90 * 60, None, 'an hour'),
    (22 * 3600, 3600, '{} hours'),
    (36 * 3600, None, 'a day'),
    (26 * 86400, 86400, '{} days'),
    (46 * 86400, None, 'a month'),
    (320 * 86400, 30 * 86400, '{} months'),
    (548 * 86400, None, 'a year'),
]


def humanize_timestamp(timestamp: Optional[float], now: Optional[float] = None) -> str:
    """Describe an epoch timestamp relative to ``now``, e.g. '3 days ago' or 'in an hour'."""
    if timestamp is None:
        return 'unknown'
    now = time.time() if now is None else now
    delta = float(timestamp) - float(now)
    seconds = abs(delta)

    phrase = None
    for bound, unit, text in _HUMANIZE_STEPS:
        if seconds < bound:
            phrase = text if unit is None else text.format(int(round(seconds / unit)))
            break
    if phrase is None:
        phrase = f"{int(round(seconds / (365 * 86400)))} years"
    return f"in {phrase}" if delta > 0 else f"{phrase} ago"


def render_loading(raw_count: int, pending: Iterable[str] = ()) -> str:
    """The still-loading state: how many comments were found and which ones lack blame results."""
    lines = [f"Total {raw_count} comments found", "Loading ..."]
    pending = sorted(pending)
    if pending:
        lines.append(f"Waiting on {len(pending)} comment(s):")
        lines.extend(f"  {key}" for key in pending)
    return "\n".join(lines)


def render_oneline(comments: Mapping[Any, CorrelatedComment], now: Optional[float] = None) -> str:
    lines = []
    for comment in comments.values():
        when = humanize_timestamp(comment.timestamp, now)
        lines.append(f"  {POINTER}  {when[:14]:<14} {comment.content or ''}")
    return "\n".join(lines)


def _render_comment_detail(comment: CorrelatedComment, now: Optional[float]) -> List[str]:
    when = humanize_timestamp(comment.timestamp, now)
    return [
        f"  {POINTER}  {comment.content or ''}",
        f"     Commit: ({comment.short_hash}) {comment.summary or ''}",
        f"     File:   {comment.filename or ''}:{comment.final_line or ''}",
        f"     {comment.author_name} commented {when}",
    ]


def render_multiline(comments: Mapping[Any, CorrelatedComment], now: Optional[float] = None) -> str:
    blocks = ["\n".join(_render_comment_detail(c, now)) for c in comments.values()]
    return "\n\n".join(blocks)


def render_stats(stats: CommentStats, now: Optional[float] = None) -> str:
    """Render the stats block; empty when there are no comments."""
    if not stats.total:
        return ''
    rows = [(f"{marker.upper()} Count", count) for marker, count in stats.counts.items() if count]
    rows.append(("Total Comments", stats.total))
    oldest = stats.oldest
    rows.append(("Oldest Comment", humanize_timestamp(oldest.timestamp if oldest else None, now)))
    rows.append(("Oldest Commenter", oldest.author_name if oldest else ''))
    rows.append(("Oldest Comment", (oldest.content or '') if oldest else ''))
    return "\n".join(f"      {label:<20}{value}" for label, value in rows)


def render_text(comments: Mapping[Any, CorrelatedComment], oneline: bool = False, stats: bool = True,
                markers: Iterable[str] = DEFAULT_MARKERS, now: Optional[float] = None) -> str:
    body = render_oneline(comments, now) if oneline else render_multiline(comments, now)
    parts = [body] if body else []
    if stats:
        block = render_stats(summarize(comments, markers), now)
        if block:
            parts.append(block)
    return "\n\n".join(parts)


def _comment_record(comment: CorrelatedComment) -> Dict[str, Any]:
    author = comment.author
    return {
        'content': comment.content,
        'commit': comment.commit_hash,
        'summary': comment.summary,
        'file': comment.filename,
        'line': comment.final_line,
        'author': author.name if author else None,
        'mail': author.mail if author else None,
        'timestamp': author.timestamp if author else None,
    }


def render_csv(comments: Mapping[Any, CorrelatedComment]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    header = ['content', 'commit', 'summary', 'file', 'line', 'author', 'mail', 'timestamp']
    writer.writerow(header)
    for comment in comments.values():
        record = _comment_record(comment)
        writer.writerow(['' if record[h] is None else record[h] for h in header])
    return output.getvalue()


def _stats_record(stats: CommentStats) -> Dict[str, Any]:
    oldest = stats.oldest
    return {
        'counts': dict(stats.counts),
        'total': stats.total,
        'oldest': _comment_record(oldest) if oldest else None,
    }


def render_json(comments: Mapping[Any, CorrelatedComment], stats: bool = True,
                markers: Iterable[str] = DEFAULT_MARKERS) -> str:
    payload: Dict[str, Any] = {'comments': [_comment_record(c) for c in comments.values()]}
    if stats:
        payload['stats'] = _stats_record(summarize(comments, markers))
    return json.dumps(payload, indent=2)


def _template_env() -> Environment:
    tmpl_dir = os.path.join(os.path.dirname(__file__), 'templates')
    env = Environment(loader=FileSystemLoader(tmpl_dir), autoescape=select_autoescape(['html', 'xml', 'html.j2']))
    env.filters['humanize'] = humanize_timestamp
    return env


def _template_context(comments: Mapping[Any, CorrelatedComment], oneline: bool, stats: bool,
                      markers: Iterable[str], now: Optional[float]) -> Dict[str, Any]:
    return {
        'comments': list(comments.values()),
        'oneline': oneline,
        'stats': summarize(comments, markers) if stats else None,
        'now': time.time() if now is None else now,
    }


def render_markdown(comments: Mapping[Any, CorrelatedComment], oneline: bool = False, stats: bool = True,
                    markers: Iterable[str] = DEFAULT_MARKERS, now: Optional[float] = None) -> str:
    tmpl = _template_env().get_template('comments.md.j2')
    return tmpl.render(**_template_context(comments, oneline, stats, markers, now))


def render_html(comments: Mapping[Any, CorrelatedComment], oneline: bool = False, stats: bool = True,
                markers: Iterable[str] = DEFAULT_MARKERS, now: Optional[float] = None) -> str:
    tmpl = _template_env().get_template('report.html.j2')
    return tmpl.render(**_template_context(comments, oneline, stats, markers, now))


def render(
    comments: Mapping[Any, CorrelatedComment],
    fmt: str = 'text',
    oneline: bool = False,
    stats: bool = True,
    markers: Iterable[str] = DEFAULT_MARKERS,
    now: Optional[float] = None,
) -> str:
    """Main render function. Unknown formats fall back to text."""
    markers = list(markers)
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(comments, oneline, stats, markers, now)
    if fmt_l == 'csv':
        return render_csv(comments)
    if fmt_l in ('html', 'htm'):
        return render_html(comments, oneline, stats, markers, now)
    if fmt_l == 'json':
        return render_json(comments, stats, markers)
    return render_text(comments, oneline, stats, markers, now)
