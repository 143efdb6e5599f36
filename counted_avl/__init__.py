"""Counted AVL trees (AVL tree maps with order statistics)."""
from counted_avl.avl_tree import AVLTree, AVLEntry

__all__ = ['AVLTree', 'AVLEntry']
