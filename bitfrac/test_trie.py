"""
Tests for the state trie and key encodings.
"""
import unittest
import tempfile
import shutil
from bitfrac.utils.encoding import (
    hex_prefix_encode, hex_prefix_decode, bytes_to_nibbles, nibbles_to_bytes,
    encode_uint, decode_uint,
)
from bitfrac.trie import Trie, BLANK_ROOT
from bitfrac.db import DB


class TestEncoding(unittest.TestCase):
    def test_hex_prefix_leaf_odd_length(self):
        path = (1, 2, 3)
        decoded_path, is_leaf = hex_prefix_decode(hex_prefix_encode(path, is_leaf=True))
        self.assertEqual(decoded_path, path)
        self.assertTrue(is_leaf)

    def test_hex_prefix_extension_even_length(self):
        path = (0, 1, 2, 3, 4, 5)
        decoded_path, is_leaf = hex_prefix_decode(hex_prefix_encode(path, is_leaf=False))
        self.assertEqual(decoded_path, path)
        self.assertFalse(is_leaf)

    def test_empty_path(self):
        decoded_path, is_leaf = hex_prefix_decode(hex_prefix_encode((), is_leaf=False))
        self.assertEqual(decoded_path, ())
        self.assertFalse(is_leaf)

    def test_bytes_to_nibbles(self):
        self.assertEqual(bytes_to_nibbles(b'\x12\x34\x56'), (1, 2, 3, 4, 5, 6))
        self.assertEqual(nibbles_to_bytes((1, 2, 3, 4, 5, 6)), b'\x12\x34\x56')

    def test_odd_nibbles_rejected(self):
        with self.assertRaises(ValueError):
            nibbles_to_bytes((1, 2, 3))

    def test_uint_keys_sort_numerically(self):
        keys = [encode_uint(n) for n in (1, 2, 10, 256, 70000)]
        self.assertEqual(keys, sorted(keys))
        self.assertEqual(decode_uint(encode_uint(70000)), 70000)


class TestTrie(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.db = DB(self.test_dir)
        self.trie = Trie(self.db)

    def tearDown(self):
        self.db.close()
        shutil.rmtree(self.test_dir)

    def test_empty_trie(self):
        self.assertEqual(self.trie.root_hash, BLANK_ROOT)
        self.assertIsNone(self.trie.get(b'missing'))
        self.assertEqual(list(self.trie.items()), [])

    def test_set_and_get(self):
        self.trie.set(b'dog', b'puppy')
        self.trie.set(b'doge', b'coin')
        self.trie.set(b'do', b'verb')
        self.trie.set(b'horse', b'stallion')

        self.assertEqual(self.trie.get(b'dog'), b'puppy')
        self.assertEqual(self.trie.get(b'doge'), b'coin')
        self.assertEqual(self.trie.get(b'do'), b'verb')
        self.assertEqual(self.trie.get(b'horse'), b'stallion')
        self.assertIsNone(self.trie.get(b'd'))
        self.assertIsNone(self.trie.get(b'dogs'))

    def test_overwrite(self):
        self.trie.set(b'key', b'one')
        self.trie.set(b'key', b'two')
        self.assertEqual(self.trie.get(b'key'), b'two')

    def test_empty_value_rejected(self):
        with self.assertRaises(ValueError):
            self.trie.set(b'key', b'')

    def test_root_is_order_independent(self):
        other = Trie(self.db)
        pairs = [(b'alpha', b'1'), (b'alps', b'2'), (b'beta', b'3')]
        for k, v in pairs:
            self.trie.set(k, v)
        for k, v in reversed(pairs):
            other.set(k, v)
        self.assertEqual(self.trie.root_hash, other.root_hash)

    def test_old_roots_stay_readable(self):
        self.trie.set(b'balance', b'100')
        old_root = self.trie.root_hash
        self.trie.set(b'balance', b'50')

        snapshot = Trie(self.db, root_hash=old_root)
        self.assertEqual(snapshot.get(b'balance'), b'100')
        self.assertEqual(self.trie.get(b'balance'), b'50')

    def test_items_with_prefix(self):
        self.trie.set(b'BALANCE:\x01alice', b'10')
        self.trie.set(b'BALANCE:\x01bob', b'20')
        self.trie.set(b'BALANCE:\x02carol', b'30')
        self.trie.set(b'ASSET:\x01', b'x')

        items = list(self.trie.items(b'BALANCE:\x01'))
        self.assertEqual(items, [(b'BALANCE:\x01alice', b'10'), (b'BALANCE:\x01bob', b'20')])

        everything = [k for k, _ in self.trie.items()]
        self.assertEqual(everything, sorted(everything))
        self.assertEqual(len(everything), 4)

    def test_items_includes_exact_prefix_key(self):
        self.trie.set(b'do', b'verb')
        self.trie.set(b'dog', b'puppy')
        self.trie.set(b'cat', b'kitten')
        self.assertEqual(list(self.trie.items(b'do')), [(b'do', b'verb'), (b'dog', b'puppy')])


class TestDB(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_batch_discarded_on_error(self):
        with DB(self.test_dir) as db:
            with self.assertRaises(RuntimeError):
                with db.write_batch() as batch:
                    batch.put(b'a', b'1')
                    raise RuntimeError("abort")
            self.assertIsNone(db.get(b'a'))

            with db.write_batch() as batch:
                batch.put(b'k:a', b'1')
                batch.put(b'k:b', b'2')
            self.assertEqual(list(db.iterator(prefix=b'k:')), [(b'k:a', b'1'), (b'k:b', b'2')])

    def test_closed_db_refuses_reads(self):
        db = DB(self.test_dir)
        db.close()
        with self.assertRaises(RuntimeError):
            db.get(b'a')


if __name__ == '__main__':
    unittest.main()
