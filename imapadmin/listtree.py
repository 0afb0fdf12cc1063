from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from re import Pattern
from typing import Optional

__all__ = ['TreeEntry', 'ListTree']


@dataclass(frozen=True)
class TreeEntry:
    """A mailbox of a :class:`ListTree`.

    Args:
        name: The fully qualified mailbox name.
        exists: False if only inferior mailboxes exist.
        has_children: True if the mailbox has inferior mailboxes.

    """

    name: str
    exists: bool
    has_children: bool

    @property
    def attributes(self) -> frozenset[str]:
        """The mailbox attributes a ``LIST`` response would carry, e.g.
        ``\\Noselect``.

        See Also:
            `RFC 3348 <https://tools.ietf.org/html/rfc3348>`_

        """
        ret = {'\\HasChildren' if self.has_children else '\\HasNoChildren'}
        if not self.exists:
            ret.add('\\Noselect')
        return frozenset(ret)


class _Node:

    __slots__ = ['parent', 'name', 'exists', 'children']

    def __init__(self, name: str, parent: Optional[_Node] = None) -> None:
        super().__init__()
        self.parent = parent
        self.name = name
        self.exists = False
        self.children: dict[str, _Node] = {}

    def add(self, part: str, *rest: str) -> None:
        child = self.children.get(part)
        if child is None:
            self.children[part] = child = _Node(part, self)
        if rest:
            child.add(*rest)
        else:
            child.exists = True

    def prune(self) -> None:
        node: Optional[_Node] = self
        while node is not None and node.parent is not None \
                and not node.exists and not node.children:
            del node.parent.children[node.name]
            node = node.parent


class ListTree:
    """A tree of hierarchical mailbox names. Superior names that do not exist
    as mailboxes are kept as ``\\Noselect`` entries.

    Args:
        delimiter: The hierarchy delimiter.

    """

    _wildcards = re.compile(r'([*%])')

    __slots__ = ['delimiter', '_one_level', '_root']

    def __init__(self, delimiter: str) -> None:
        super().__init__()
        self.delimiter = delimiter
        self._one_level = '[^' + re.escape(delimiter) + ']*?'
        self._root = _Node('')

    def update(self, *names: str) -> ListTree:
        """Add the mailbox names, filling in missing superior nodes."""
        for name in names:
            self._root.add(*name.split(self.delimiter))
        return self

    def _find(self, name: str) -> Optional[_Node]:
        node = self._root
        for part in name.split(self.delimiter):
            child = node.children.get(part)
            if child is None:
                return None
            node = child
        return node

    def remove(self, name: str) -> bool:
        """Remove a mailbox. Its inferiors are kept.

        Returns:
            False if the mailbox did not exist.

        """
        node = self._find(name)
        if node is None or not node.exists:
            return False
        node.exists = False
        node.prune()
        return True

    def _walk(self, node: _Node, name: str) -> Iterator[TreeEntry]:
        if node.parent is not None:
            yield TreeEntry(name, node.exists, bool(node.children))
        for child in node.children.values():
            child_name = self.delimiter.join((name, child.name)) \
                if name else child.name
            yield from self._walk(child, child_name)

    def get(self, name: str) -> Optional[TreeEntry]:
        """Return the named entry, if it is in the tree."""
        node = self._find(name)
        if node is None:
            return None
        return TreeEntry(name, node.exists, bool(node.children))

    def get_renames(self, from_name: str, to_name: str) \
            -> Sequence[tuple[str, str]]:
        """Return the ``(old, new)`` name pairs of the mailbox and all of its
        inferiors for a rename. An unknown mailbox yields an empty list.

        See Also:
            `RFC 3501 6.3.5
            <https://tools.ietf.org/html/rfc3501#section-6.3.5>`_

        """
        node = self._find(from_name)
        if node is None:
            return []
        old = [entry.name for entry in self._walk(node, from_name)
               if entry.exists]
        new = [entry.name for entry in self._walk(node, to_name)
               if entry.exists]
        return list(zip(old, new))

    def list(self) -> Iterable[TreeEntry]:
        """Return every entry of the tree."""
        return self._walk(self._root, '')

    def _pattern(self, query: str) -> tuple[Pattern, Pattern]:
        parts: list[str] = []
        for part in self._wildcards.split(query):
            if part == '*':
                parts.append('.*?')
            elif part == '%':
                parts.append(self._one_level)
            else:
                parts.append(re.escape(part))
        pattern = '^' + ''.join(parts) + '$'
        return re.compile(pattern), re.compile(pattern, re.IGNORECASE)

    def list_matching(self, ref_name: str,
                      filter_: str) -> Iterable[TreeEntry]:
        """Return the entries that match a ``LIST`` reference name and
        mailbox pattern.

        Args:
            ref_name: The reference name.
            filter_: The mailbox pattern, with possible wildcards.

        """
        exact, inbox = self._pattern(ref_name + filter_)
        for entry in self.list():
            if entry.name == 'INBOX':
                if inbox.match('INBOX'):
                    yield entry
            elif exact.match(entry.name):
                yield entry
