"""Profiles counted AVL trees against `sortedcontainers.SortedDict`.

Usage:
    python profile_tree.py [n] [seed] [--demo]
"""
import argparse
import logging
import time
from contextlib import contextmanager
from random import Random
from sortedcontainers import SortedDict
from counted_avl import AVLTree

logger = logging.getLogger('profile_tree')


@contextmanager
def timed(label: str):
    """Logs the wall-clock time spent in the block."""
    start = time.perf_counter()
    yield
    logger.info('%s in %.0f ms.', label, (time.perf_counter() - start) * 1000)


def profile(n: int, seed: int) -> None:
    """Times put/get/entry_at/remove against a reference sorted map."""
    n = max(n, 1000)
    rng = Random(seed)
    keys = [rng.randint(-2**31, 2**31 - 1) for _ in range(n)]
    ref = SortedDict()
    tree = AVLTree()

    with timed('SortedDict.__setitem__()'):
        for key in keys:
            ref[key] = key
    with timed('AVLTree.put()'):
        for key in keys:
            tree.put(key, key)
    logger.info('AVLTree.is_healthy(): %s', tree.is_healthy())

    with timed('SortedDict.__getitem__()'):
        for _ in range(3):
            for key in keys:
                if ref[key] != key:
                    raise RuntimeError('SortedDict lookup failed.')
    with timed('AVLTree.get()'):
        for _ in range(3):
            for key in keys:
                if tree.get(key) != key:
                    raise RuntimeError('AVLTree.get() failed.')
    logger.info('AVLTree.size: %d, SortedDict size: %d', tree.size, len(ref))

    for key in keys[:100]:
        ref.pop(key, None)
        tree.remove(key)
    logger.info('Removed 100 keys. AVLTree.size: %d, SortedDict size: %d',
                tree.size, len(ref))

    with timed('AVLTree.entry_at()'):
        for _ in range(3):
            prev = None
            for idx in range(-2, len(keys)):
                entry = tree.entry_at(idx)
                if idx < 0 or idx >= tree.size:
                    if entry is not None:
                        raise RuntimeError(f'Rank {idx} should be absent.')
                elif prev is not None and prev.key > entry.key:
                    raise RuntimeError('Entries are out of order.')
                else:
                    prev = entry
    logger.info('AVLTree.is_healthy(): %s', tree.is_healthy())

    with timed('SortedDict.pop()'):
        for key in keys:
            ref.pop(key, None)
    with timed('AVLTree.remove()'):
        for key in keys:
            tree.remove(key)
    logger.info('Both empty now: %s', not ref and tree.size == 0)


def demo() -> None:
    """Shows rank lookups on a small tree."""
    tree = AVLTree((i, i) for i in range(10))
    for idx in range(-5, 15):
        logger.info('i = %2d: entry_at(i): %s', idx, tree.entry_at(idx))
    tree.put(5, 55)
    tree.remove(5)
    for idx in range(-5, 15):
        logger.info('i = %2d: entry_at(i): %s', idx, tree.entry_at(idx))
    logger.info('AVLTree.is_healthy(): %s', tree.is_healthy())


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('n', type=int, nargs='?', default=600000,
                        help='number of keys to insert (at least 1000)')
    parser.add_argument('seed', type=int, nargs='?', default=323,
                        help='seed for the key generator')
    parser.add_argument('--demo', action='store_true',
                        help='run the small rank lookup demo instead')
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(message)s')
    if args.demo:
        demo()
    else:
        profile(args.n, args.seed)


if __name__ == '__main__':
    main()
