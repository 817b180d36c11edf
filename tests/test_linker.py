import unittest

from errors import MalformedEvent
from normalize.models import RawComment, Author, LineAttribution, CommitMetadata
from correlate.keys import identity_key
from correlate.linker import StoreState, ScanRecorded, AttributionRecorded, reduce_event

HASH = 'a' * 40


def _line_event(content='  // TODO: fix this'):
    return LineAttribution(commit_hash=HASH, filename='src/app.js', final_line=3, original_line=2,
                           summary='Add notes', content=content)


def _commit_event():
    return CommitMetadata(commit_hash=HASH, author=Author('Alice', 'alice@example.com', 1500000000, '+0200'),
                          summary='Add notes')


class TestIdentityKey(unittest.TestCase):
    def test_trailing_whitespace_ignored(self):
        self.assertEqual(identity_key('a.py', 3, '# TODO'), identity_key('a.py', 3, '# TODO   \t'))

    def test_leading_whitespace_significant(self):
        self.assertNotEqual(identity_key('a.py', 3, '# TODO'), identity_key('a.py', 3, '  # TODO'))

    def test_components_distinguish(self):
        base = identity_key('a.py', 3, 'x')
        self.assertNotEqual(base, identity_key('b.py', 3, 'x'))
        self.assertNotEqual(base, identity_key('a.py', 4, 'x'))
        self.assertNotEqual(base, identity_key('a.py', 3, 'y'))

    def test_no_concatenation_collisions(self):
        self.assertNotEqual(identity_key('a1', 23, 'x'), identity_key('a', 123, 'x'))
        self.assertNotEqual(identity_key('a:1', 2, 'x'), identity_key('a', 1, '2:x'))

    def test_empty_text(self):
        self.assertTrue(identity_key('a.py', 1, ''))


class TestReduceEvent(unittest.TestCase):
    def setUp(self):
        self.raw = RawComment('src/app.js', 3, '  // TODO: fix this')
        self.key = identity_key(self.raw.file, self.raw.line, self.raw.text)
        self.state = reduce_event(StoreState(), ScanRecorded(self.raw))

    def test_scan_does_not_mutate_previous_state(self):
        empty = StoreState()
        reduce_event(empty, ScanRecorded(self.raw))
        self.assertEqual(empty.scan_count, 0)
        self.assertEqual(self.state.scan_count, 1)

    def test_attribution_normalizes_content(self):
        state = reduce_event(self.state, AttributionRecorded(self.key, HASH, _line_event()))
        comment = state.comments[(self.key, HASH)]
        self.assertEqual(comment.content, 'TODO: fix this')
        self.assertEqual(comment.filename, 'src/app.js')
        self.assertEqual(state.kind_counters['line'], 1)
        self.assertEqual(state.kind_counters['commit'], 0)

    def test_kind_order_is_commutative(self):
        forward = self.state
        for ev in (_line_event(), _commit_event()):
            forward = reduce_event(forward, AttributionRecorded(self.key, HASH, ev))
        backward = self.state
        for ev in (_commit_event(), _line_event()):
            backward = reduce_event(backward, AttributionRecorded(self.key, HASH, ev))
        self.assertEqual(forward.comments[(self.key, HASH)], backward.comments[(self.key, HASH)])
        self.assertEqual(dict(forward.kind_counters), dict(backward.kind_counters))
        self.assertTrue(forward.is_complete())

    def test_missing_commit_hash_is_malformed(self):
        with self.assertRaises(MalformedEvent):
            reduce_event(self.state, AttributionRecorded(self.key, '', LineAttribution(commit_hash='', final_line=3)))

    def test_unscanned_key_is_malformed(self):
        with self.assertRaises(MalformedEvent):
            reduce_event(self.state, AttributionRecorded('nope', HASH, _line_event()))

    def test_unknown_message_is_malformed(self):
        with self.assertRaises(MalformedEvent):
            reduce_event(self.state, object())

    def test_commit_without_author_is_malformed(self):
        with self.assertRaises(MalformedEvent):
            reduce_event(self.state, AttributionRecorded(self.key, HASH, CommitMetadata(commit_hash=HASH)))


if __name__ == '__main__':
    unittest.main()
