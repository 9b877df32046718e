"""Iterative flattening of directory trees.

Scanned collections can be arbitrarily deep, so both helpers walk the tree
with an explicit work stack instead of recursion.
"""

from __future__ import annotations

from typing import List

from .models import Directory, Document


def flatten_documents(root: Directory) -> List[Document]:
    """Return every document reachable from ``root``.

    Args:
        root: Directory to start from.

    Returns:
        List[Document]: Documents of ``root`` followed by those of every
        subdirectory, in traversal order.
    """

    result: List[Document] = list(root.documents)
    stack: List[Directory] = list(root.directories)
    while stack:
        current = stack.pop()
        result.extend(current.documents)
        stack.extend(current.directories)
    return result


def flatten_directories(root: Directory) -> List[Directory]:
    """Return ``root`` and every directory below it.

    Args:
        root: Directory to start from.

    Returns:
        List[Directory]: ``root`` first, then all subdirectories in traversal order.
    """

    result: List[Directory] = [root]
    stack: List[Directory] = list(root.directories)
    while stack:
        current = stack.pop()
        result.append(current)
        stack.extend(current.directories)
    return result


__all__ = ["flatten_documents", "flatten_directories"]
