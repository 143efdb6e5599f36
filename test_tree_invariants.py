"""Invariant tests for counted AVL trees."""
import pytest
from random import Random
from math import log2
from counted_avl import AVLTree


def random_seq(length, seed):
    rng = Random(seed)
    seq = list(range(length))
    rng.shuffle(seq)
    return seq


def make_sequences(prefix, length, num_random, seed_offset=0):
    """Generates insertion (or deletion) sequences."""
    # The bit reversal sequence makes the most sense when `n`
    # is a power of 2, so we round.
    nearest_pow = round(log2(length))
    return {
        **{
            f'{prefix}_asc':
            list(range(length)),
            f'{prefix}_desc':
            list(reversed(range(length))),
            # elegant bit reversal: https://stackoverflow.com/a/12682003
            f'{prefix}_bit_reversal': [
                int(('{:0' + str(nearest_pow) + 'b}').format(n)[::-1], 2)
                for n in range(2**nearest_pow)
            ]
        },
        **{
            f'{prefix}_rand_{seed}': random_seq(length, seed + seed_offset)
            for seed in range(num_random)
        }
    }


def all_iterator_kv_invariant(tree, seq):
    """Invariant: all() generates key-value pairs in ascending order."""
    pairs = list(tree.all())
    assert len(pairs) == len(seq)
    for key, (actual_k, actual_v) in zip(sorted(seq), pairs):
        assert key == actual_k, f"Keys don't match ({key} ≠ {actual_k})"
        assert key == actual_v, f"Values don't match ({key} ≠ {actual_v})"


def entry_at_invariant(tree, seq):
    """Invariant: the entry at rank i holds the i-th smallest key."""
    for idx, key in enumerate(sorted(seq)):
        entry = tree.entry_at(idx)
        assert entry.key == key, f'Rank {idx}: {entry.key} ≠ {key}'
        assert tree.rank(key) == idx
    assert tree.entry_at(-1) is None
    assert tree.entry_at(len(seq)) is None


def find_invariant(tree, seq):
    """Invariant: inserted keys can be found and return the right value."""
    for el in seq:
        assert tree.get(el) == el


def not_found_invariant(tree, seq):
    """Invariant: deleted keys cannot be found."""
    for el in seq:
        assert tree.get(el) is None
        assert tree.rank(el) is None
        assert el not in tree


def height_invariant(tree):
    """Invariant: an AVL tree with n nodes has height ≤ 1.45 log2(n)."""
    if tree.size > 0:
        assert tree.height <= 1.45 * log2(tree.size), \
            f'Height {tree.height} too large for {tree.size} nodes.'


short_sequences = make_sequences('short', 300, 10)
long_sequences = make_sequences('long', 5000, 10)
insert_and_delete_sequences = {
    k: (ins_seq, del_seq)
    for ((k, ins_seq), (_, del_seq)) in zip(
        make_sequences('shortest', 200, 10).items(),
        make_sequences('shortest', 200, 10, seed_offset=20).items())
}


# Strict tests check invariants at every step.
@pytest.mark.parametrize('seq', short_sequences.keys())
def test_insert_only_strict(seq):
    tree = AVLTree()
    tree.check_invariants()
    assert tree.is_healthy()
    inserted = []
    for el in short_sequences[seq]:
        assert tree.put(el, el) is None
        inserted.append(el)
        tree.check_invariants()
        assert tree.is_healthy()
        assert tree.size == len(inserted)
        height_invariant(tree)
    all_iterator_kv_invariant(tree, inserted)
    entry_at_invariant(tree, inserted)
    find_invariant(tree, inserted)


@pytest.mark.parametrize('seq', long_sequences.keys())
def test_insert_only(seq):
    tree = AVLTree()
    inserted = []
    for idx, el in enumerate(long_sequences[seq]):
        tree.put(el, el)
        inserted.append(el)
        if idx % 1000 == 0:
            tree.check_invariants()
            height_invariant(tree)
    tree.check_invariants()
    height_invariant(tree)
    all_iterator_kv_invariant(tree, inserted)
    entry_at_invariant(tree, inserted)
    find_invariant(tree, inserted)


@pytest.mark.parametrize('seq_pair', insert_and_delete_sequences.keys())
def test_insert_and_delete_strict(seq_pair):
    insert_seq, delete_seq = insert_and_delete_sequences[seq_pair]
    tree = AVLTree()
    inserted = []
    for el in insert_seq:
        tree.put(el, el)
        inserted.append(el)
        tree.check_invariants()
    deleted = []
    for el in delete_seq:
        assert tree.remove(el) == el
        inserted.remove(el)
        deleted.append(el)
        tree.check_invariants()
        assert tree.is_healthy()
        assert tree.size == len(inserted)
        all_iterator_kv_invariant(tree, inserted)
        find_invariant(tree, inserted)
        not_found_invariant(tree, deleted)
    entry_at_invariant(tree, inserted)


@pytest.mark.parametrize('seq_pair', insert_and_delete_sequences.keys())
def test_remove_absent_is_noop(seq_pair):
    insert_seq, _ = insert_and_delete_sequences[seq_pair]
    tree = AVLTree((el, el) for el in insert_seq)
    before = list(tree.all())
    height = tree.height
    for el in (-1, len(insert_seq) + 1, 10**6):
        assert tree.remove(el) is None
    assert list(tree.all()) == before
    assert tree.size == len(insert_seq)
    assert tree.height == height
    assert tree.is_healthy()


@pytest.mark.parametrize('seq', short_sequences.keys())
def test_interleaved_put_and_remove_strict(seq):
    rng = Random(seq)
    tree = AVLTree()
    present = set()
    for el in short_sequences[seq]:
        tree.put(el, el)
        present.add(el)
        if rng.random() < 0.4:
            victim = rng.choice(sorted(present))
            assert tree.remove(victim) == victim
            present.discard(victim)
        tree.check_invariants()
    all_iterator_kv_invariant(tree, present)
    entry_at_invariant(tree, present)


def test_remove_everything():
    tree = AVLTree((el, el) for el in random_seq(500, 7))
    for el in random_seq(500, 8):
        tree.remove(el)
        tree.check_invariants()
    assert tree.size == 0
    assert tree.root is None
    assert tree.height == -1
    assert list(tree.all()) == []
    assert tree.is_healthy()
