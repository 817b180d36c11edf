"""
Identity keys joining scan hits to their blame results.
"""
from urllib.parse import quote


def identity_key(file: str, line: int, text: str) -> str:
    """Derive the join key for a scan hit.

    Trailing whitespace of ``text`` is dropped so re-scans of an unchanged line collide;
    leading whitespace is kept. Path and text are percent-encoded so the ':' separators
    cannot appear inside a component.
    """
    text = (text or '').rstrip()
    return f"{quote(file, safe='/')}:{int(line)}:{quote(text, safe='')}"
