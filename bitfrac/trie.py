"""
A Merkle Patricia Trie holding the ledger state.

Nodes are immutable once written: every `set` writes new nodes and moves the
root hash, so any earlier root stays readable. The ledger relies on this to
discard a failed operation by simply not adopting its root.
"""
from typing import Iterator

import rlp
from bitfrac.utils.encoding import (
    hex_prefix_encode,
    hex_prefix_decode,
    bytes_to_nibbles,
    nibbles_to_bytes,
)
from bitfrac.crypto import generate_hash

BLANK_NODE = b''
BLANK_ROOT = generate_hash(rlp.encode(BLANK_NODE))
BRANCH_WIDTH = 17


def _common_prefix_length(a: tuple, b: tuple) -> int:
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


def _overlaps(path: tuple, prefix: tuple) -> bool:
    """True if one of the two nibble paths is a prefix of the other."""
    n = min(len(path), len(prefix))
    return path[:n] == prefix[:n]


class Trie:
    def __init__(self, db, root_hash: bytes = None):
        self.db = db
        self.root_hash = root_hash or BLANK_ROOT

    def get(self, key: bytes) -> bytes | None:
        """Get a value by key."""
        return self._get(self.root_hash, bytes_to_nibbles(key))

    def set(self, key: bytes, value: bytes):
        """Set a key-value pair. Empty values are not storable."""
        if not value:
            raise ValueError("Trie values must be non-empty bytes")
        self.root_hash = self._set(self.root_hash, bytes_to_nibbles(key), value)

    def items(self, prefix: bytes = b'') -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs under `prefix` in ascending key order."""
        target = bytes_to_nibbles(prefix)
        for path, value in self._walk(self.root_hash, (), target):
            yield nibbles_to_bytes(path), value

    # --- node storage ---

    def _load(self, node_hash: bytes) -> list | None:
        if not node_hash or node_hash == BLANK_ROOT:
            return None
        node_data = self.db.get(node_hash)
        if not node_data:
            return None
        node = rlp.decode(node_data)
        return list(node) if node else None

    def _put_node(self, node: list) -> bytes:
        encoded_node = rlp.encode(node)
        node_hash = generate_hash(encoded_node)
        self.db.put(node_hash, encoded_node)
        return node_hash

    def _leaf(self, path: tuple, value: bytes) -> bytes:
        return self._put_node([hex_prefix_encode(path, is_leaf=True), value])

    def _extension(self, path: tuple, child_hash: bytes) -> bytes:
        return self._put_node([hex_prefix_encode(path, is_leaf=False), child_hash])

    # --- traversal ---

    def _get(self, node_hash: bytes, path: tuple) -> bytes | None:
        node = self._load(node_hash)
        if node is None:
            return None

        if len(node) == BRANCH_WIDTH:
            if not path:
                return node[16] or None
            return self._get(node[path[0]], path[1:])

        node_path, is_leaf = hex_prefix_decode(node[0])
        if is_leaf:
            return node[1] if node_path == path else None
        if path[:len(node_path)] != node_path:
            return None
        return self._get(node[1], path[len(node_path):])

    def _set(self, node_hash: bytes, path: tuple, value: bytes) -> bytes:
        node = self._load(node_hash)
        if node is None:
            return self._leaf(path, value)

        if len(node) == BRANCH_WIDTH:
            if not path:
                node[16] = value
            else:
                node[path[0]] = self._set(node[path[0]], path[1:], value)
            return self._put_node(node)

        if len(node) != 2:
            raise ValueError(f"Invalid node structure: {len(node)} elements")

        node_path, is_leaf = hex_prefix_decode(node[0])
        common = _common_prefix_length(path, node_path)

        if is_leaf and node_path == path:
            return self._leaf(path, value)

        if not is_leaf and common == len(node_path):
            return self._extension(node_path, self._set(node[1], path[common:], value))

        # Paths diverge (or one ends inside the other): split into a branch.
        branch = [BLANK_NODE] * BRANCH_WIDTH

        rest_existing = node_path[common:]
        if is_leaf:
            if not rest_existing:
                branch[16] = node[1]
            else:
                branch[rest_existing[0]] = self._leaf(rest_existing[1:], node[1])
        elif len(rest_existing) == 1:
            branch[rest_existing[0]] = node[1]
        else:
            branch[rest_existing[0]] = self._extension(rest_existing[1:], node[1])

        rest_new = path[common:]
        if not rest_new:
            branch[16] = value
        else:
            branch[rest_new[0]] = self._leaf(rest_new[1:], value)

        branch_hash = self._put_node(branch)
        if common:
            return self._extension(path[:common], branch_hash)
        return branch_hash

    def _walk(self, node_hash: bytes, base: tuple, target: tuple):
        node = self._load(node_hash)
        if node is None:
            return

        if len(node) == BRANCH_WIDTH:
            if node[16] and len(base) >= len(target) and _overlaps(base, target):
                yield base, node[16]
            for nibble in range(16):
                child_base = base + (nibble,)
                if node[nibble] and _overlaps(child_base, target):
                    yield from self._walk(node[nibble], child_base, target)
            return

        node_path, is_leaf = hex_prefix_decode(node[0])
        full = base + node_path
        if not _overlaps(full, target):
            return
        if is_leaf:
            if len(full) >= len(target):
                yield full, node[1]
        else:
            yield from self._walk(node[1], full, target)
