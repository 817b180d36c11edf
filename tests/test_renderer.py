import csv
import io
import json
import unittest

from normalize.models import Author
from correlate.models import CorrelatedComment
from report import renderer

NOW = 1700000000
DAY = 86400


def _comments():
    old = CorrelatedComment(key='k1', commit_hash='abcdef1234567890' * 2 + 'abcdef12', content='FIXME: handle null',
                            filename='src/a.js', final_line=10, summary='Initial import',
                            author=Author('Kamran Ahmed', timestamp=NOW - 400 * DAY))
    new = CorrelatedComment(key='k2', commit_hash='1234567890abcdef' * 2 + '12345678', content='TODO: refactor',
                            filename='src/b.js', final_line=3, summary='Refactor later',
                            author=Author('Bob', timestamp=NOW - 3 * DAY))
    return {old.join_key: old, new.join_key: new}


class TestHumanize(unittest.TestCase):
    def test_past_and_future(self):
        self.assertEqual(renderer.humanize_timestamp(NOW - 10, NOW), 'a few seconds ago')
        self.assertEqual(renderer.humanize_timestamp(NOW - 3 * DAY, NOW), '3 days ago')
        self.assertEqual(renderer.humanize_timestamp(NOW + 2 * 3600, NOW), 'in 2 hours')
        self.assertEqual(renderer.humanize_timestamp(NOW - 400 * DAY, NOW), 'a year ago')
        self.assertEqual(renderer.humanize_timestamp(NOW - 3 * 365 * DAY, NOW), '3 years ago')

    def test_unknown(self):
        self.assertEqual(renderer.humanize_timestamp(None, NOW), 'unknown')


class TestTextRendering(unittest.TestCase):
    def test_multiline(self):
        out = renderer.render_text(_comments(), oneline=False, stats=False, now=NOW)
        self.assertIn('FIXME: handle null', out)
        self.assertIn('Commit: (abcdef1) Initial import', out)
        self.assertIn('File:   src/a.js:10', out)
        self.assertIn('Bob commented 3 days ago', out)
        self.assertNotIn('Total Comments', out)

    def test_oneline(self):
        out = renderer.render_text(_comments(), oneline=True, stats=False, now=NOW)
        lines = out.splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn('3 days ago', lines[1])
        self.assertTrue(lines[1].rstrip().endswith('TODO: refactor'))

    def test_stats_block(self):
        out = renderer.render_text(_comments(), oneline=True, stats=True, markers=['TODO', 'FIXME', 'DOCME'], now=NOW)
        self.assertIn('TODO Count', out)
        self.assertIn('FIXME Count', out)
        self.assertNotIn('DOCME Count', out)
        self.assertIn('Total Comments      2', out)
        self.assertIn('Oldest Commenter    Kamran Ahmed', out)

    def test_empty_view_has_no_stats(self):
        self.assertEqual(renderer.render_text({}, stats=True, now=NOW), '')

    def test_loading(self):
        out = renderer.render_loading(4, ['b.py:2', 'a.py:1'])
        self.assertTrue(out.startswith('Total 4 comments found\nLoading ...'))
        self.assertLess(out.index('a.py:1'), out.index('b.py:2'))


class TestExportFormats(unittest.TestCase):
    def test_csv(self):
        rows = list(csv.reader(io.StringIO(renderer.render(_comments(), fmt='csv'))))
        self.assertEqual(rows[0][:3], ['content', 'commit', 'summary'])
        self.assertEqual(rows[1][0], 'FIXME: handle null')
        self.assertEqual(len(rows), 3)

    def test_json(self):
        payload = json.loads(renderer.render(_comments(), fmt='json', markers=['TODO', 'FIXME']))
        self.assertEqual(len(payload['comments']), 2)
        self.assertEqual(payload['stats']['counts'], {'todo': 1, 'fixme': 1})
        self.assertEqual(payload['stats']['oldest']['author'], 'Kamran Ahmed')

    def test_markdown(self):
        md = renderer.render(_comments(), fmt='md', now=NOW)
        self.assertIn('# Pending Comments', md)
        self.assertIn('## FIXME: handle null', md)
        self.assertIn('Total Comments: **2**', md)

    def test_html_escapes_content(self):
        comments = _comments()
        key = next(iter(comments))
        comments[key] = comments[key].merge({'content': 'TODO: <script>'})
        html = renderer.render(comments, fmt='html', now=NOW)
        self.assertIn('<h1>Pending Comments</h1>', html)
        self.assertIn('TODO: &lt;script&gt;', html)
        self.assertIn('Kamran Ahmed', html)

    def test_unknown_format_falls_back_to_text(self):
        out = renderer.render(_comments(), fmt='yaml', stats=False, now=NOW)
        self.assertIn('Commit: (abcdef1)', out)


if __name__ == '__main__':
    unittest.main()
