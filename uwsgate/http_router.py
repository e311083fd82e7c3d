"""URL router matching methods and path patterns against a tree of handlers."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

ANY_METHOD_TOKEN = "*"

HIGH_PRIORITY = 0xD0000000
MEDIUM_PRIORITY = 0xE0000000
LOW_PRIORITY = 0xF0000000

MAX_URL_SEGMENTS = 100

# Handler ids carry their index in the low 28 bits and the priority above.
HANDLER_MASK = 0x0FFFFFFF
PRIORITY_MASK = 0xF0000000

RouteHandler = Callable[["HttpRouter"], Any]

_PARAMETER = re.compile(r":([^/]*)")


def parameter_offsets(pattern: str) -> dict[str, int]:
    """Map each ':name' parameter in a pattern to its position among the parameters."""
    offsets: dict[str, int] = {}
    for offset, match in enumerate(_PARAMETER.finditer(pattern)):
        offsets[match.group(1)] = offset
    return offsets


def _url_segments(url: str) -> list[str]:
    """Split a URL that starts on a slash into at most MAX_URL_SEGMENTS segments."""
    segments: list[str] = []
    rest = url
    while rest and len(segments) < MAX_URL_SEGMENTS:
        rest = rest[1:]
        cut = rest.find("/")
        if cut == -1:
            cut = len(rest)
        segments.append(rest[:cut])
        rest = rest[cut:]
    return segments


def _lexical_order(name: str) -> int:
    """Static segments sort first, then parameters, then wildcards."""
    if name.startswith(":"):
        return 1
    if name.startswith("*"):
        return 0
    return 2


@dataclass(eq=False)
class _Node:
    name: str
    is_high_priority: bool = False
    children: list[_Node] = field(default_factory=list)
    handlers: list[int] = field(default_factory=list)


def _method_order(node: _Node) -> tuple[int, str]:
    if node.name == "GET":
        return (0, "")
    if node.name == ANY_METHOD_TOKEN:
        return (2, "")
    return (1, node.name)


class HttpRouter:
    """Routes a method and URL to the first handler that accepts it.

    A handler receives the router and returns a true value when it handled
    the request; a false value yields to the next matching handler.
    """

    def __init__(self) -> None:
        self.user_data: Any = None
        self._handlers: list[RouteHandler] = []
        self._params: list[str] = []
        self._root = _Node("rootNode")
        self._get_node(self._root, ANY_METHOD_TOKEN, False)

    def _precedes(self, parent: _Node, new: _Node, existing: _Node) -> bool:
        if new.is_high_priority != existing.is_high_priority:
            return new.is_high_priority
        return (
            bool(existing.name)
            and parent is not self._root
            and _lexical_order(existing.name) < _lexical_order(new.name)
        )

    def _get_node(self, parent: _Node, name: str, is_high_priority: bool) -> _Node:
        for child in parent.children:
            if child.name == name and child.is_high_priority == is_high_priority:
                return child
        node = _Node(name, is_high_priority)
        position = next(
            (
                index
                for index, existing in enumerate(parent.children)
                if self._precedes(parent, node, existing)
            ),
            len(parent.children),
        )
        parent.children.insert(position, node)
        return node

    def _run(self, handler_ids: Iterable[int]) -> bool:
        for handler_id in tuple(handler_ids):
            if self._handlers[handler_id & HANDLER_MASK](self):
                return True
        return False

    def _execute(self, parent: _Node, segments: list[str], depth: int) -> bool:
        if depth >= len(segments):
            return self._run(parent.handlers)

        segment = segments[depth]
        for child in parent.children:
            if child.name.startswith("*"):
                if self._run(child.handlers):
                    return True
            elif child.name.startswith(":") and segment:
                self._params.append(segment)
                if self._execute(child, segments, depth + 1):
                    return True
                self._params.pop()
            elif child.name == segment:
                if self._execute(child, segments, depth + 1):
                    return True
        return False

    def _find_handler(self, method: str, pattern: str, priority: int) -> int | None:
        high = priority == HIGH_PRIORITY
        for method_node in self._root.children:
            if method_node.name != method:
                continue
            node = method_node
            for segment in _url_segments(pattern):
                node = next(
                    (
                        child
                        for child in node.children
                        if child.name == segment and child.is_high_priority == high
                    ),
                    None,
                )
                if node is None:
                    return None
            return next(
                (h for h in node.handlers if (h & PRIORITY_MASK) == priority), None
            )
        return None

    def _cull(self, parent: _Node | None, node: _Node, handler_id: int) -> bool:
        for child in list(node.children):
            self._cull(node, child, handler_id)

        if parent is None:
            return False

        index = handler_id & HANDLER_MASK
        kept: list[int] = []
        for h in node.handlers:
            if (h & HANDLER_MASK) > index:
                kept.append(((h & HANDLER_MASK) - 1) | (h & PRIORITY_MASK))
            elif h != handler_id:
                kept.append(h)
        node.handlers = kept

        if not node.handlers and not node.children:
            parent.children.remove(node)
            return True
        return False

    def add(
        self,
        methods: Iterable[str] | str,
        pattern: str,
        handler: RouteHandler,
        priority: int = MEDIUM_PRIORITY,
    ) -> None:
        """Register a handler for every method in methods, replacing any equal route."""
        method_list = [methods] if isinstance(methods, str) else list(methods)
        if not method_list:
            raise ValueError("at least one method is required")

        self.remove(method_list[0], pattern, priority)

        handler_id = priority | len(self._handlers)
        high = priority == HIGH_PRIORITY
        segments = _url_segments(pattern)
        for method in method_list:
            node = self._get_node(self._root, method, False)
            for segment in segments:
                node = self._get_node(node, segment, high)
            position = next(
                (i for i, h in enumerate(node.handlers) if handler_id < h),
                len(node.handlers),
            )
            node.handlers.insert(position, handler_id)

        self._handlers.append(handler)
        self._root.children.sort(key=_method_order)

    def remove(self, method: str, pattern: str, priority: int) -> bool:
        """Remove the handler found by method, pattern and priority from every route it serves.

        Returns False when no such handler exists.
        """
        handler_id = self._find_handler(method, pattern, priority)
        if handler_id is None:
            return False
        self._cull(None, self._root, handler_id)
        del self._handlers[handler_id & HANDLER_MASK]
        return True

    def route(self, method: str, url: str) -> bool:
        """Run handlers matching method and url; the any-method routes are tried last."""
        segments = _url_segments(url)
        self._params = []

        for method_node in self._root.children:
            if method_node.name == method:
                if self._execute(method_node, segments, 0):
                    return True
                break

        children = self._root.children
        if not children or children[-1].name != ANY_METHOD_TOKEN:
            return False
        return self._execute(children[-1], segments, 0)

    def parameters(self) -> tuple[str, ...]:
        """The URL parameters captured on the way to the current handler."""
        return tuple(self._params)