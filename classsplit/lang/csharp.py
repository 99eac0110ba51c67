"""
C# language adapter using tree-sitter.

The parser locates the single type declared by a file and cuts its body into
declaration units. The renderer puts any subset of those units back into
either the original file (with ``partial`` added) or a freshly synthesized
file carrying the same usings, namespaces and type signature.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import tree_sitter_c_sharp as ts_c_sharp
from tree_sitter import Language, Node, Parser

from classsplit.exceptions import (
    AggregateNotFoundError,
    SourceParseError,
    UnsupportedAggregateError,
)
from classsplit.lang.base import ParsedSource
from classsplit.splitting.types import DeclarationUnit, GroupRole

logger = logging.getLogger(__name__)

AGGREGATE_NODE_TYPES = {
    'class_declaration',
    'struct_declaration',
    'record_declaration',
    'record_struct_declaration',
    'interface_declaration',
}
AGGREGATE_KEYWORDS = {'class', 'struct', 'record', 'interface'}
PREAMBLE_NODE_TYPES = {'using_directive', 'extern_alias_directive'}
TYPE_MODIFIERS = {
    'abstract',
    'file',
    'internal',
    'new',
    'partial',
    'private',
    'protected',
    'public',
    'readonly',
    'ref',
    'sealed',
    'static',
    'unsafe',
}
# Directives that must stay balanced within one file.
DROPPED_DIRECTIVES = ('#region', '#endregion')
MAX_REPORTED_ERRORS = 5


@dataclass(frozen=True)
class NamespaceScope:
    """A namespace enclosing the aggregate."""

    name: str
    file_scoped: bool
    indent: str = ''
    brace_on_own_line: bool = True
    usings: tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregateShape:
    """Everything needed to re-declare the aggregate in another file.

    Attributes:
        name: Type name.
        modifiers: Modifiers in source order, e.g. ``('public', 'static')``.
        signature: Keyword, name and type parameters, e.g. ``'class Cache<T>'``.
        indent: Indentation of the declaration line.
        is_partial: Whether the source already declares the type partial.
        brace_on_own_line: Whether the body's ``{`` starts a new line.
        head: Original text up to and including the body's ``{``, with
            ``partial`` inserted when missing.
        tail: Original text from the body's ``}`` to the end of the file.
    """

    name: str
    modifiers: tuple[str, ...]
    signature: str
    indent: str
    is_partial: bool
    brace_on_own_line: bool
    head: str
    tail: str


@dataclass(frozen=True)
class CSharpSource(ParsedSource):
    """A parsed C# file."""

    shape: AggregateShape | None = None
    preamble: tuple[str, ...] = ()
    namespaces: tuple[NamespaceScope, ...] = field(default_factory=tuple)


def _decode(data: bytes) -> str:
    return data.decode('utf-8')


def _line_start(data: bytes, offset: int) -> int:
    return data.rfind(b'\n', 0, offset) + 1


def _indent_of(data: bytes, offset: int) -> str:
    start = _line_start(data, offset)
    end = start
    while end < len(data) and data[end : end + 1] in (b' ', b'\t'):
        end += 1
    return _decode(data[start:end])


def _is_directive(node: Node) -> bool:
    return node.text.lstrip().startswith(b'#')


def _is_trivia(node: Node) -> bool:
    """Comments and single line directives attach to the following member."""
    if node.type == 'comment':
        return True
    return _is_directive(node) and b'\n' not in node.text.strip()


def _is_dropped_directive(node: Node) -> bool:
    text = _decode(node.text).strip()
    return any(text.startswith(directive) for directive in DROPPED_DIRECTIVES)


def _is_pragma_warning(node: Node, action: str) -> bool:
    words = _decode(node.text).split()
    return words[:3] == ['#pragma', 'warning', action]


def _member_name(node: Node) -> str | None:
    name = node.child_by_field_name('name')
    if name is not None:
        return _decode(name.text)
    # Fields and events keep their names on the variable declarators.
    stack = list(node.named_children)
    while stack:
        child = stack.pop(0)
        if child.type == 'variable_declarator':
            identifier = child.child_by_field_name('name')
            if identifier is None:
                identifier = next(
                    (c for c in child.named_children if c.type == 'identifier'), None
                )
            if identifier is not None:
                return _decode(identifier.text)
        stack.extend(child.named_children)
    return None


class CSharpAdapter:
    """Language adapter for C# sources."""

    def __init__(self) -> None:
        self._language = Language(ts_c_sharp.language())

    @property
    def language(self) -> str:
        return 'csharp'

    @property
    def file_extensions(self) -> set[str]:
        return {'.cs'}

    def parse(self, source: str, path: str = '<string>') -> CSharpSource:
        """Parse a C# file into its aggregate and ordered declaration units.

        Args:
            source: The file content, with ``\\n`` line endings.
            path: Path of the file, used in diagnostics.

        Returns:
            The parsed source.

        Raises:
            SourceParseError: If the file has syntax errors.
            AggregateNotFoundError: If the file does not declare exactly one
                class, struct, record or interface at namespace level.
            UnsupportedAggregateError: If the type is declared ``file`` local.
        """
        data = source.encode('utf-8')
        # Parser instances are not shared so adapters can be used from threads.
        tree = Parser(self._language).parse(data)
        root = tree.root_node

        if root.has_error:
            raise SourceParseError(path, self._error_locations(root))

        candidates = list(self._find_aggregates(root, []))
        if len(candidates) != 1:
            names = [self._aggregate_name(node) for node, _ in candidates]
            raise AggregateNotFoundError(path, names)

        aggregate, scopes = candidates[0]
        shape = self._shape(data, aggregate)
        if 'file' in shape.modifiers:
            raise UnsupportedAggregateError(
                path, shape.name, 'file-local types cannot span several files'
            )
        units = self._units(data, aggregate, shape)

        logger.debug(
            f'Parsed {path}: {shape.name} with {len(units)} member(s) '
            f'in {len(scopes)} namespace(s)'
        )

        return CSharpSource(
            path=path,
            aggregate_name=shape.name,
            units=tuple(units),
            shape=shape,
            preamble=self._preamble(root),
            namespaces=tuple(self._scope(data, node, root) for node in scopes),
        )

    def renderer(self, parsed: CSharpSource) -> CSharpRenderer:
        return CSharpRenderer(parsed)

    def _error_locations(self, root: Node) -> list[str]:
        locations = []
        stack = [root]
        while stack and len(locations) < MAX_REPORTED_ERRORS:
            node = stack.pop()
            if node.type == 'ERROR' or node.is_missing:
                row, column = node.start_point
                locations.append(f'{row + 1}:{column + 1}')
                continue
            if node.has_error:
                stack.extend(reversed(node.children))
        return locations

    def _find_aggregates(self, container: Node, scopes: list[Node]):
        """Yield ``(aggregate, enclosing_namespaces)`` for namespace level types."""
        current_scopes = scopes
        for child in container.named_children:
            if child.type in AGGREGATE_NODE_TYPES:
                if self._body(child) is not None:
                    yield child, current_scopes
            elif child.type == 'namespace_declaration':
                body = child.child_by_field_name('body')
                if body is not None:
                    yield from self._find_aggregates(body, current_scopes + [child])
            elif child.type == 'file_scoped_namespace_declaration':
                # Members follow the declaration as siblings in recent grammar
                # versions and are nested inside it in older ones.
                current_scopes = scopes + [child]
                yield from self._find_aggregates(child, current_scopes)

    def _aggregate_name(self, node: Node) -> str:
        name = node.child_by_field_name('name')
        return _decode(name.text) if name is not None else node.type

    def _body(self, node: Node) -> Node | None:
        body = node.child_by_field_name('body')
        if body is not None and body.type == 'declaration_list':
            return body
        return next((c for c in node.children if c.type == 'declaration_list'), None)

    def _braces(self, body: Node) -> tuple[Node, Node]:
        open_brace = next(c for c in body.children if c.type == '{')
        close_brace = next(c for c in reversed(body.children) if c.type == '}')
        return open_brace, close_brace

    def _shape(self, data: bytes, node: Node) -> AggregateShape:
        keyword = next(
            c for c in node.children if not c.is_named and c.type in AGGREGATE_KEYWORDS
        )
        attributes = [
            c
            for c in node.children
            if c.type == 'attribute_list' and c.end_byte <= keyword.start_byte
        ]
        modifiers_start = attributes[-1].end_byte if attributes else node.start_byte
        modifiers = tuple(
            word
            for word in _decode(data[modifiers_start : keyword.start_byte]).split()
            if word in TYPE_MODIFIERS
        )
        is_partial = 'partial' in modifiers

        name = node.child_by_field_name('name')
        type_parameters = node.child_by_field_name('type_parameters')
        if type_parameters is None:
            type_parameters = next(
                (c for c in node.children if c.type == 'type_parameter_list'), None
            )
        signature_end = (
            type_parameters if type_parameters is not None else name
        ).end_byte
        signature = ' '.join(_decode(data[keyword.start_byte : signature_end]).split())

        open_brace, close_brace = self._braces(self._body(node))

        head = data[: keyword.start_byte]
        if not is_partial:
            head += b'partial '
        head += data[keyword.start_byte : open_brace.end_byte]

        return AggregateShape(
            name=_decode(name.text),
            modifiers=modifiers,
            signature=signature,
            indent=_indent_of(data, node.start_byte),
            is_partial=is_partial,
            brace_on_own_line=open_brace.start_point[0] > keyword.start_point[0],
            head=_decode(head),
            tail=_decode(data[close_brace.start_byte :]),
        )

    def _units(
        self, data: bytes, node: Node, shape: AggregateShape
    ) -> list[DeclarationUnit]:
        body = self._body(node)
        open_brace, close_brace = self._braces(body)
        members = [
            c
            for c in body.children
            if open_brace.end_byte <= c.start_byte
            and c.end_byte <= close_brace.start_byte
        ]

        spans: list[list] = []  # [start, end, member, dropped directives]
        trivia_start: int | None = None
        trivia_end = 0
        dropped: list[Node] = []
        last_member_row = -1
        # Members between a warning disable and its restore form one unit.
        disable_pending = False
        disable_open = False

        for child in members:
            if _is_trivia(child):
                if _is_dropped_directive(child):
                    logger.debug(f'Dropping {_decode(child.text).strip()!r}')
                    dropped.append(child)
                    continue
                if disable_open and _is_pragma_warning(child, 'restore'):
                    spans[-1][1] = child.end_byte
                    spans[-1][3] = spans[-1][3] + dropped
                    trivia_start = None
                    dropped = []
                    disable_open = False
                    last_member_row = child.start_point[0]
                    continue
                same_line = child.start_point[0] == last_member_row
                if child.type == 'comment' and same_line and trivia_start is None:
                    spans[-1][1] = child.end_byte
                    continue
                if trivia_start is None:
                    trivia_start = child.start_byte
                trivia_end = child.end_byte
                if _is_pragma_warning(child, 'disable'):
                    disable_pending = True
                continue
            if not child.is_named:
                continue

            if disable_open:
                spans[-1][1] = child.end_byte
                spans[-1][3] = spans[-1][3] + dropped
            else:
                start = child.start_byte if trivia_start is None else trivia_start
                spans.append([start, child.end_byte, child, dropped])
                disable_open = disable_pending
            disable_pending = False
            trivia_start = None
            dropped = []
            last_member_row = child.end_point[0]

        if trivia_start is not None and spans:
            # Comments before the closing brace stay with the last member.
            spans[-1][1] = trivia_end
            spans[-1][3] = spans[-1][3] + dropped

        units = []
        for index, (start, end, member, directives) in enumerate(spans):
            units.append(
                DeclarationUnit(
                    original_index=index,
                    content=self._unit_text(data, start, end, directives, shape),
                    name=_member_name(member),
                    kind=member.type.removesuffix('_declaration'),
                )
            )
        return units

    def _unit_text(
        self,
        data: bytes,
        start: int,
        end: int,
        directives: list[Node],
        shape: AggregateShape,
    ) -> str:
        line_start = _line_start(data, start)
        prefix = b''
        if data[line_start:start].strip():
            # The member shares its first line with other code.
            prefix = f'{shape.indent}    '.encode()
        else:
            start = line_start

        chunk = data[start:end]
        for directive in sorted(directives, key=lambda n: n.start_byte, reverse=True):
            if not start <= directive.start_byte < end:
                continue
            cut_start = _line_start(data, directive.start_byte) - start
            cut_end = data.find(b'\n', directive.end_byte - 1)
            cut_end = (len(data) if cut_end == -1 else cut_end + 1) - start
            chunk = chunk[: max(cut_start, 0)] + chunk[cut_end:]

        return _decode(prefix + chunk).rstrip()

    def _preamble(self, root: Node) -> tuple[str, ...]:
        """Usings and file level directives ahead of the first declaration.

        Directives such as ``#nullable enable`` change how the rest of the
        file compiles, so new files repeat them in their original order.
        """
        preamble = []
        for child in root.named_children:
            if child.type == 'comment':
                continue
            text = _decode(child.text).strip()
            if _is_trivia(child):
                if not _is_dropped_directive(child):
                    preamble.append(text)
                continue
            if child.type not in PREAMBLE_NODE_TYPES:
                break
            # Global usings apply to the whole project already.
            if not text.startswith('global '):
                preamble.append(text)
        return tuple(preamble)

    def _scope(self, data: bytes, node: Node, root: Node) -> NamespaceScope:
        name = _decode(node.child_by_field_name('name').text)
        indent = _indent_of(data, node.start_byte)

        if node.type == 'file_scoped_namespace_declaration':
            siblings = list(node.named_children)
            if node.parent is not None and node.parent.type == 'compilation_unit':
                siblings += [
                    c for c in root.named_children if c.start_byte >= node.end_byte
                ]
            usings = tuple(
                f'{indent}{_decode(c.text).strip()}'
                for c in siblings
                if c.type in PREAMBLE_NODE_TYPES
            )
            return NamespaceScope(
                name=name, file_scoped=True, indent=indent, usings=usings
            )

        body = node.child_by_field_name('body')
        usings = tuple(
            f'{_indent_of(data, c.start_byte)}{_decode(c.text).strip()}'
            for c in body.named_children
            if c.type in PREAMBLE_NODE_TYPES
        )
        return NamespaceScope(
            name=name,
            file_scoped=False,
            indent=indent,
            brace_on_own_line=body.start_point[0] > node.start_point[0],
            usings=usings,
        )


class CSharpRenderer:
    """Renders groups of units of one parsed C# file.

    Rendering is a pure function of the parsed source, the units and the
    role, so repeated calls produce identical text.
    """

    def __init__(self, source: CSharpSource):
        self.source = source
        self.shape = source.shape

    def render(self, units: Sequence[DeclarationUnit], role: GroupRole) -> str:
        body = '\n\n'.join(unit.content for unit in units)
        if role is GroupRole.ORIGINAL:
            return self._render_original(body)
        return self._render_new(body)

    def _render_original(self, body: str) -> str:
        parts = [self.shape.head, '\n']
        if body:
            parts += [body, '\n']
        parts += [self.shape.indent, self.shape.tail]
        return ''.join(parts)

    def _render_new(self, body: str) -> str:
        lines: list[str] = []
        if self.source.preamble:
            lines.extend(self.source.preamble)
            lines.append('')

        closers = []
        for scope in self.source.namespaces:
            if scope.file_scoped:
                lines.append(f'{scope.indent}namespace {scope.name};')
                lines.append('')
            elif scope.brace_on_own_line:
                lines.append(f'{scope.indent}namespace {scope.name}')
                lines.append(f'{scope.indent}{{')
                closers.append(f'{scope.indent}}}')
            else:
                lines.append(f'{scope.indent}namespace {scope.name} {{')
                closers.append(f'{scope.indent}}}')
            if scope.usings:
                lines.extend(scope.usings)
                lines.append('')

        shape = self.shape
        modifiers = [m for m in shape.modifiers if m != 'partial']
        header = ' '.join([*modifiers, 'partial', shape.signature])
        if shape.brace_on_own_line:
            lines.append(f'{shape.indent}{header}')
            lines.append(f'{shape.indent}{{')
        else:
            lines.append(f'{shape.indent}{header} {{')
        if body:
            lines.append(body)
        lines.append(f'{shape.indent}}}')
        lines.extend(reversed(closers))

        return '\n'.join(lines) + '\n'
