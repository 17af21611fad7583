"""
Minimal template engine for the Searchlab search page.

Python rendition of the t.js micro-template language the search page
templates are written in:

    {{key}}...{{:key}}...{{/key}}   block if key is truthy, else the alternate
    {{!key}}...{{/key}}             block if key is falsy or absent
    {{@key}}...{{/key}}             block once per list/mapping entry (_key, _val)
    {{=key}}                        raw value
    {{%key}}                        HTML-escaped value

Closing and separator tags may repeat the prefix ({{/@items}}) or omit it
({{/items}}). Keys are dotted paths into the context.

A template is tokenized and parsed into a directive tree once, then evaluated
against a Scope chain. Interpolated values are never re-scanned for
directives, and malformed nesting renders as literal text instead of raising.
"""

import html
import json
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

TEMPLATE_DIR = Path(__file__).parent / "templates"

_TAG = re.compile(r"\{\{([@!:/=%]?)(.+?)\}\}")


class _Absent:
    """Result of a lookup that did not resolve; falsy, never an error."""

    __slots__ = ()

    def __bool__(self):
        return False

    def __repr__(self):
        return "ABSENT"


ABSENT = _Absent()


# =============================================================================
# Directive tree
# =============================================================================

@dataclass
class Literal:
    text: str


@dataclass
class Interpolate:
    path: str
    escaped: bool = False


@dataclass
class Conditional:
    path: str
    negated: bool = False
    body: List["Node"] = field(default_factory=list)
    alternate: List["Node"] = field(default_factory=list)


@dataclass
class Iterate:
    path: str
    body: List["Node"] = field(default_factory=list)
    alternate: List["Node"] = field(default_factory=list)


Node = Union[Literal, Interpolate, Conditional, Iterate]


# =============================================================================
# Context lookup
# =============================================================================

class Scope:
    """One level of name resolution.

    Iteration pushes a child scope that binds _key/_val and exposes the fields
    of the current entry; the parent context is never written to.
    """

    def __init__(self, data: Any, parent: Optional["Scope"] = None,
                 bindings: Optional[Dict[str, Any]] = None):
        self.data = data
        self.parent = parent
        self.bindings = bindings or {}

    def resolve(self, name: str) -> Any:
        scope = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            value = _child(scope.data, name)
            if value is not ABSENT:
                return value
            scope = scope.parent
        return ABSENT


def _child(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value[name] if name in value else ABSENT
    if isinstance(value, (list, tuple, str)):
        if name == "length":
            return len(value)
        if name.isdecimal() and int(name) < len(value):
            return value[int(name)]
    return ABSENT


def lookup(context: Any, path: str) -> Any:
    """Resolve a dotted *path* against *context*; ABSENT if any segment is missing."""
    segments = path.split(".")
    if isinstance(context, Scope):
        value = context.resolve(segments[0])
    else:
        value = _child(context, segments[0])
    for segment in segments[1:]:
        if value is ABSENT:
            break
        value = _child(value, segment)
    return value


# =============================================================================
# Value semantics (JSON payload truthiness)
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _truthy(value: Any) -> bool:
    if value is ABSENT or value is None or value is False:
        return False
    if _is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    # empty lists and mappings are present, they just iterate to nothing
    return True


def _printable(value: Any) -> bool:
    return _truthy(value) or (_is_number(value) and value == 0)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else _stringify(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    return str(value)


def _escape(text: str) -> str:
    return html.escape(text, quote=False).replace('"', "&quot;")


def _entries(value: Any) -> List[Tuple[Any, Any]]:
    if isinstance(value, Mapping):
        return list(value.items())
    # strings iterate per character, like for...in over a JS string
    if isinstance(value, (list, tuple, str)):
        return list(enumerate(value))
    return []


# =============================================================================
# Parsing
# =============================================================================

@dataclass(frozen=True)
class _Tag:
    kind: str   # "", "!", "@", ":", "/", "=", "%"
    key: str
    raw: str


def _tokenize(source: str) -> List[Union[str, _Tag]]:
    tokens: List[Union[str, _Tag]] = []
    pos = 0
    for m in _TAG.finditer(source):
        if m.start() > pos:
            tokens.append(source[pos:m.start()])
        kind, key = m.group(1), m.group(2).strip()
        if kind in (":", "/") and key[:1] in ("@", "!"):
            key = key[1:].strip()
        tokens.append(_Tag(kind, key, m.group(0)))
        pos = m.end()
    if pos < len(source):
        tokens.append(source[pos:])
    return tokens


class _Parser:
    """Two-pass parser over the token stream.

    The first pass matches every opening tag with its separator and close,
    walking from the last token backwards so nested blocks are already known
    when an outer block scans past them. An opening tag whose close never
    arrives is left unmatched and renders as literal text. The second pass
    builds the tree with an explicit stack, so nesting depth is unbounded.
    """

    def __init__(self, tokens: List[Union[str, _Tag]]):
        self.tokens = tokens
        # opening position -> (separator position or None, close position)
        self._spans: Dict[int, Tuple[Optional[int], int]] = {}

    def parse(self) -> List[Node]:
        self._match_blocks()
        root: List[Node] = []
        frames: List[Tuple[_Tag, List[Node], List[Node], Optional[int], int]] = []
        targets: List[List[Node]] = [root]
        for pos, tok in enumerate(self.tokens):
            if frames:
                tag, body, alternate, sep, close = frames[-1]
                if pos == sep:
                    targets[-1] = alternate
                    continue
                if pos == close:
                    frames.pop()
                    targets.pop()
                    if tag.kind == "@":
                        targets[-1].append(Iterate(tag.key, body, alternate))
                    else:
                        targets[-1].append(Conditional(tag.key, tag.kind == "!", body, alternate))
                    continue
            if isinstance(tok, str):
                targets[-1].append(Literal(tok))
            elif pos in self._spans:
                sep, close = self._spans[pos]
                frame = (tok, [], [], sep, close)
                frames.append(frame)
                targets.append(frame[1])
            elif tok.key and tok.kind in ("=", "%"):
                targets[-1].append(Interpolate(tok.key, escaped=tok.kind == "%"))
            else:
                # stray close/separator or a block that is never closed
                targets[-1].append(Literal(tok.raw))
        return root

    def _match_blocks(self) -> None:
        for start in range(len(self.tokens) - 1, -1, -1):
            tag = self.tokens[start]
            if isinstance(tag, str) or not tag.key or tag.kind not in ("", "!", "@"):
                continue
            sep = None
            pos, stop = self._scan(start + 1, tag.key, ("/", ":"))
            if stop is not None and stop.kind == ":":
                sep = pos
                pos, stop = self._scan(pos + 1, tag.key, ("/",))
            if stop is not None:
                self._spans[start] = (sep, pos)

    def _scan(self, pos: int, key: str, stops: Tuple[str, ...]):
        while pos < len(self.tokens):
            tok = self.tokens[pos]
            if isinstance(tok, _Tag):
                if tok.key == key and tok.kind in stops:
                    return pos, tok
                if pos in self._spans:
                    pos = self._spans[pos][1] + 1
                    continue
            pos += 1
        return pos, None


def parse(source: str) -> List[Node]:
    """Parse template *source* into a directive tree."""
    return _Parser(_tokenize(source)).parse()


# =============================================================================
# Evaluation
# =============================================================================

def _render_nodes(nodes: List[Node], scope: Scope) -> str:
    parts = []
    pending = [(node, scope) for node in reversed(nodes)]
    while pending:
        node, scope = pending.pop()
        if isinstance(node, Literal):
            parts.append(node.text)
            continue

        value = lookup(scope, node.path)

        if isinstance(node, Interpolate):
            if _printable(value):
                text = _stringify(value)
                parts.append(_escape(text) if node.escaped else text)
            continue

        if isinstance(node, Conditional):
            branch = node.body if _truthy(value) != node.negated else node.alternate
            pending.extend((child, scope) for child in reversed(branch))
            continue

        if not _truthy(value):
            pending.extend((child, scope) for child in reversed(node.alternate))
            continue
        for key, val in reversed(_entries(value)):
            entry = Scope(val, parent=scope, bindings={"_key": key, "_val": val})
            pending.extend((child, entry) for child in reversed(node.body))
    return "".join(parts)


class Template:
    """A parsed template; render() may be called any number of times."""

    def __init__(self, source: str):
        self.source = source
        self.nodes = parse(source)

    def render(self, context: Any = None) -> str:
        if not isinstance(context, Scope):
            context = Scope({} if context is None else context)
        return _render_nodes(self.nodes, context)


def render(template: str, context: Any = None) -> str:
    """Render template source *template* against *context*."""
    return Template(template).render(context)


def load(template_name: str) -> Template:
    """Load *template_name* from the templates directory."""
    path = TEMPLATE_DIR / template_name
    try:
        source = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        source = f"<h1>Template not found: {template_name}</h1>"
    return Template(source)
