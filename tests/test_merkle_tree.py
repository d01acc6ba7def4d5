"""
Tests for Merkle Tree build, proofs and verification.
"""

import pytest
from eth_utils import encode_hex, keccak

from merkle_drop.errors import EncodingError, IndexOutOfRange, MalformedTreeError
from merkle_drop.tree import Entry, LeafEncoder, MerkleTree, hash_pair, verify_entry, verify_proof

from conftest import flip_bit, make_entries


def sorted_hash(a: bytes, b: bytes) -> bytes:
    return keccak(min(a, b) + max(a, b))


class TestHashPair:
    """Test sorted-pair hashing."""

    def test_order_independent(self):
        a, b = keccak(b"a"), keccak(b"b")
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_smaller_digest_first(self):
        a, b = keccak(b"a"), keccak(b"b")
        assert hash_pair(a, b) == sorted_hash(a, b)


class TestMerkleTree:
    """Test Merkle Tree implementation."""

    def test_build_tree(self):
        tree = MerkleTree.from_entries(make_entries(4))

        assert len(tree.root) == 32
        assert tree.root_hex.startswith("0x")
        assert len(tree.root_hex) == 66
        assert tree.leaf_count == 4
        assert tree.depth == 2

    def test_root_changes_with_data(self):
        entries = make_entries(2)
        tree1 = MerkleTree.from_entries(entries)
        tree2 = MerkleTree.from_entries([entries[0], Entry(entries[1].address, 1)])

        assert tree1.root != tree2.root

    def test_leaf_order_preserved(self):
        leaves = [keccak(bytes([i])) for i in range(5)]
        tree = MerkleTree.build(leaves)
        assert list(tree.leaves) == leaves

    def test_empty_tree_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            MerkleTree.build([])

    def test_wrong_width_leaf_rejected(self):
        with pytest.raises(EncodingError):
            MerkleTree.build([keccak(b"a"), b"\x00" * 31])

    def test_single_leaf_tree(self):
        leaf = keccak(b"only")
        tree = MerkleTree.build([leaf])

        assert tree.root == leaf
        assert tree.depth == 0
        proof = tree.get_proof(0)
        assert proof.siblings == ()
        assert verify_proof(leaf, [], tree.root)

    def test_two_leaf_tree(self):
        a, b = keccak(b"a"), keccak(b"b")
        tree = MerkleTree.build([a, b])

        assert tree.root == sorted_hash(a, b)
        assert tree.get_proof(0).siblings == (b,)
        assert tree.get_proof(1).siblings == (a,)

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 6, 7, 8, 9, 16, 17, 33])
    def test_level_sizes(self, count):
        tree = MerkleTree.build([keccak(bytes([i])) for i in range(count)])

        sizes = [len(level) for level in tree.levels]
        assert sizes[0] == count
        assert sizes[-1] == 1
        for below, above in zip(sizes, sizes[1:]):
            assert above == (below + 1) // 2

    def test_odd_node_promoted_unchanged(self):
        leaves = [keccak(bytes([i])) for i in range(5)]
        tree = MerkleTree.build(leaves)

        # 5 -> 3 -> 2 -> 1, leaf 4 carried up twice
        assert tree.levels[1][2] == leaves[4]
        assert tree.levels[2][1] == leaves[4]
        assert tree.root == sorted_hash(tree.levels[2][0], leaves[4])

    def test_odd_node_not_duplicated(self):
        leaves = [keccak(bytes([i])) for i in range(3)]
        tree = MerkleTree.build(leaves)
        duplicated = sorted_hash(
            sorted_hash(leaves[0], leaves[1]), sorted_hash(leaves[2], leaves[2])
        )
        assert tree.root != duplicated

    def test_equality(self):
        leaves = [keccak(bytes([i])) for i in range(3)]
        assert MerkleTree.build(leaves) == MerkleTree.build(leaves)
        assert MerkleTree.build(leaves) != MerkleTree.build(leaves[:2])


class TestThreeEntryFixture:
    """Three entries, odd count: the worked example with every digest checked."""

    @pytest.fixture
    def leaves(self, three_entries):
        return LeafEncoder().encode_many(three_entries)

    @pytest.fixture
    def tree(self, leaves):
        return MerkleTree.build(leaves)

    def test_levels(self, tree, leaves):
        l0, l1, l2 = leaves
        n0 = sorted_hash(l0, l1)

        assert tree.levels[0] == (l0, l1, l2)
        assert tree.levels[1] == (n0, l2)
        assert tree.levels[2] == (sorted_hash(n0, l2),)
        assert tree.root == sorted_hash(n0, l2)

    def test_proof_for_index_2(self, tree, leaves):
        n0 = sorted_hash(leaves[0], leaves[1])
        assert tree.get_proof(2).siblings == (n0,)

    def test_proof_for_index_0(self, tree, leaves):
        assert tree.get_proof(0).siblings == (leaves[1], leaves[2])

    def test_proof_for_index_1(self, tree, leaves):
        assert tree.get_proof(1).siblings == (leaves[0], leaves[2])

    def test_tampered_amount_changes_root(self, three_entries, tree):
        tampered = list(three_entries)
        tampered[1] = Entry(three_entries[1].address, 201)
        new_tree = MerkleTree.from_entries(tampered)

        assert new_tree.leaves[1] != tree.leaves[1]
        assert new_tree.root != tree.root

        old_proof = tree.get_proof(0)
        assert verify_proof(old_proof.leaf, old_proof.siblings, tree.root)
        assert not verify_proof(old_proof.leaf, old_proof.siblings, new_tree.root)


# Known answers for the three-entry fixture, computed with an independent
# Keccak-256 implementation (checked against keccak("") and keccak("abc")).
KNOWN_DIGESTS = {
    "standard": {
        "L0": "0xdb21fb3d73debea68472bcbdac578034b1a083dc9529d97746adec99e595f388",
        "L1": "0xf8b51d15cf555d4efbffb4ee96fd926f047eb0bb164b9949a70606ba124a2a1e",
        "L2": "0x3be66ef5d92926921e9831f838b94473e93bbc75418bc801eaf3ec1fe442071e",
        "N0": "0x3c26015e1ff5eafc35376d12312112b918f68c773e014fc502c64b99f2fdca33",
        "root": "0x5f8dcac53cb85cf650f77444b718fc695ced84896d0bb49321b646d7483bf28c",
    },
    "packed": {
        "L0": "0x7a1502d84ee1e6c12f1f4702cd825bf23113581b1a71fe9ba372508bd0a61c40",
        "L1": "0xa9f1a0803174f4621b0d9207c8e6cc579458799d307f654f9d1fb53b2371f9f1",
        "L2": "0x2f51be321d38fc34dceab869fa23c8c9f9af897a46dd5b24f1cef077940341e8",
        "N0": "0x529ab1a9e09f34be99a6137f17139613ad68f72a0642a7767b215ab1689d956a",
        "root": "0x310eb79b6de97a038b85209ccfc9bdf5ba580017104e46ea6f1f042b6627ec80",
    },
}


@pytest.mark.parametrize("encoding", ["standard", "packed"])
class TestKnownDigests:
    """Pinned digests for the three-entry fixture."""

    def test_leaves(self, three_entries, encoding):
        known = KNOWN_DIGESTS[encoding]
        leaves = LeafEncoder(encoding).encode_many(three_entries)

        assert [encode_hex(leaf) for leaf in leaves] == [known["L0"], known["L1"], known["L2"]]

    def test_levels_and_root(self, three_entries, encoding):
        known = KNOWN_DIGESTS[encoding]
        tree = MerkleTree.from_entries(three_entries, encoding=encoding)

        assert [encode_hex(node) for node in tree.levels[1]] == [known["N0"], known["L2"]]
        assert tree.root_hex == known["root"]

    def test_proofs(self, three_entries, encoding):
        known = KNOWN_DIGESTS[encoding]
        tree = MerkleTree.from_entries(three_entries, encoding=encoding)

        assert tree.get_hex_proof(0) == [known["L1"], known["L2"]]
        assert tree.get_hex_proof(1) == [known["L0"], known["L2"]]
        assert tree.get_hex_proof(2) == [known["N0"]]


class TestProofs:
    """Test proof generation and verification."""

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 13, 32, 33])
    def test_every_index_verifies(self, count):
        tree = MerkleTree.from_entries(make_entries(count))

        for i in range(count):
            proof = tree.get_proof(i)
            assert proof.leaf_index == i
            assert proof.leaf == tree.leaves[i]
            assert proof.verify()
            assert verify_proof(tree.leaves[i], tree.get_hex_proof(i), tree.root_hex)

    def test_proof_length_bounded_by_depth(self):
        tree = MerkleTree.from_entries(make_entries(9))
        for i in range(9):
            assert len(tree.get_proof(i).siblings) <= tree.depth

    def test_rebuild_is_deterministic(self):
        entries = make_entries(11)
        tree1 = MerkleTree.from_entries(entries)
        tree2 = MerkleTree.from_entries(entries)

        assert tree1.root == tree2.root
        assert tree1.levels == tree2.levels
        for i in range(11):
            assert tree1.get_proof(i) == tree2.get_proof(i)

    @pytest.mark.parametrize("index", [-1, 3, 100, True, "0", 1.0])
    def test_invalid_index(self, index):
        tree = MerkleTree.from_entries(make_entries(3))
        with pytest.raises(IndexOutOfRange):
            tree.get_proof(index)

    def test_index_error_is_index_error(self):
        tree = MerkleTree.from_entries(make_entries(1))
        with pytest.raises(IndexError):
            tree.get_proof(1)

    def test_proof_to_dict(self):
        tree = MerkleTree.from_entries(make_entries(3))
        data = tree.get_proof(0).to_dict()

        assert data["leaf"] == encode_hex(tree.leaves[0])
        assert data["leaf_index"] == 0
        assert data["proof"] == tree.get_hex_proof(0)
        assert data["root"] == tree.root_hex

    def test_verify_entry(self):
        entries = make_entries(6)
        tree = MerkleTree.from_entries(entries, encoding="packed")

        proof = tree.get_proof(4)
        assert verify_entry(entries[4], proof.siblings, tree.root, encoding="packed")
        assert not verify_entry(entries[4], proof.siblings, tree.root, encoding="standard")
        assert not verify_entry(entries[3], proof.siblings, tree.root, encoding="packed")


class TestTamperDetection:
    """Flipping any single bit of leaf, proof or root must fail verification."""

    @pytest.fixture
    def tree(self):
        return MerkleTree.from_entries(make_entries(7))

    @pytest.mark.parametrize("bit", [0, 7, 100, 255])
    def test_flipped_leaf(self, tree, bit):
        for i in range(tree.leaf_count):
            proof = tree.get_proof(i)
            assert not verify_proof(flip_bit(proof.leaf, bit), proof.siblings, tree.root)

    @pytest.mark.parametrize("bit", [0, 31, 200, 255])
    def test_flipped_proof_element(self, tree, bit):
        for i in range(tree.leaf_count):
            proof = tree.get_proof(i)
            for j in range(len(proof.siblings)):
                siblings = list(proof.siblings)
                siblings[j] = flip_bit(siblings[j], bit)
                assert not verify_proof(proof.leaf, siblings, tree.root)

    @pytest.mark.parametrize("bit", [0, 128, 255])
    def test_flipped_root(self, tree, bit):
        proof = tree.get_proof(3)
        assert not verify_proof(proof.leaf, proof.siblings, flip_bit(tree.root, bit))

    def test_dropped_or_extra_sibling(self, tree):
        proof = tree.get_proof(2)
        assert not verify_proof(proof.leaf, proof.siblings[:-1], tree.root)
        assert not verify_proof(proof.leaf, proof.siblings + (tree.leaves[0],), tree.root)

    @pytest.mark.parametrize(
        "bad",
        ["0x1234", "not-hex", "0x" + "zz" * 32, b"\x00" * 31, 42],
    )
    def test_malformed_input_is_invalid(self, tree, bad):
        proof = tree.get_proof(0)
        assert not verify_proof(bad, proof.siblings, tree.root)
        assert not verify_proof(proof.leaf, [bad], tree.root)
        assert not verify_proof(proof.leaf, proof.siblings, bad)


class TestValidate:
    """Test full recomputation of a layout."""

    def test_valid_tree(self):
        MerkleTree.from_entries(make_entries(6)).validate()

    def test_corrupted_internal_node(self):
        tree = MerkleTree.from_entries(make_entries(4))
        levels = [list(level) for level in tree.levels]
        levels[1][0] = flip_bit(levels[1][0])

        with pytest.raises(MalformedTreeError, match="Level 1"):
            MerkleTree(levels).validate()
