"""
Parsers module for test scaffolding.

This module extracts a structural model of Java classes (name, access modifier,
generic parameters, primary constructor and public methods) from source text.
Two backends share the same contract: a tree-sitter based parser and a lightweight
textual scanner used when the tree-sitter grammar is not available.
"""

import re
from typing import Dict, List, Optional, Tuple

import tree_sitter_language_pack
from tree_sitter import Parser

from testscaffold.models import ClassDescriptor, MethodSignature, Parameter
from testscaffold.paths import read_source_file

ACCESS_MODIFIERS = ('public', 'protected', 'private')

IDENTIFIER = r'[A-Za-z_$][\w$]*'

# Comments and string/char literals, blanked out before any structural scanning
_COMMENT_OR_LITERAL = re.compile(
    r'//[^\n]*'
    r'|/\*.*?\*/'
    r'|"""(?:\\.|[^\\])*?"""'
    r'|"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'",
    re.DOTALL
)

_ANNOTATION = re.compile(r'@(?!interface\b)[\w$.]+(?:\s*\((?:[^()]|\([^()]*\))*\))?')

_TYPE_DECLARATION = re.compile(
    r'(?<![\w$.@])'
    r'(?P<modifiers>(?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*)'
    r'(?P<kind>class|interface|enum|record)\s+'
    r'(?P<name>' + IDENTIFIER + r')'
)

_MEMBER_MODIFIER = re.compile(
    r'(public|protected|private|static|final|abstract|synchronized|native|default|strictfp)\b\s*'
)

_NESTED_TYPE_KEYWORD = re.compile(r'(?<![\w$.@])(class|interface|enum|record)\b')

_TRAILING_IDENTIFIER = re.compile(r'(' + IDENTIFIER + r')\s*$')

_PARAMETER_NAME = re.compile(r'(' + IDENTIFIER + r')\s*((?:\[\s*\]\s*)*)$')


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """
    Split text on a separator, ignoring separators nested inside brackets.

    Commas inside generic arguments such as Map<String, Integer> do not split.

    Args:
        text: The text to split
        separator: The single-character separator

    Returns:
        The stripped, non-empty parts in their original order
    """
    parts = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char in '<([{':
            depth += 1
        elif char in '>)]}':
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
    parts.append(text[start:])
    return [part.strip() for part in parts if part.strip()]


def normalize_type(text: str) -> str:
    """Collapse whitespace in a type and drop the spaces around brackets."""
    collapsed = ' '.join(text.split())
    return re.sub(r'\s+(?=[<>\[\]])|(?<=[<\[])\s+', '', collapsed)


def make_parameter(type_text: str, name: str) -> Optional[Parameter]:
    """
    Build a Parameter from raw type text, rendering varargs as an array type.

    Args:
        type_text: The declared type, possibly ending in "..."
        name: The parameter name

    Returns:
        The Parameter, or None for receiver parameters and incomplete declarations
    """
    type_text = type_text.strip()
    if type_text.endswith('...'):
        type_text = type_text[:-3] + '[]'
    type_text = normalize_type(type_text)
    if not type_text or not name or name == 'this':
        return None
    return Parameter(type=type_text, name=name)


def access_modifier_of(modifiers) -> str:
    """Map a collection of modifier keywords to the access modifier prefix ("public ", "" ...)."""
    for keyword in ACCESS_MODIFIERS:
        if keyword in modifiers:
            return keyword + ' '
    return ''


def mask_source(text: str) -> str:
    """
    Blank out comments and literals so braces inside them do not affect scanning.

    Every masked character becomes a space except newlines, so offsets in the
    masked text are valid offsets into the original text.
    """
    return _COMMENT_OR_LITERAL.sub(lambda m: re.sub(r'[^\n]', ' ', m.group(0)), text)


def find_closing(text: str, start: int, opening: str, closing: str) -> int:
    """
    Find the bracket closing the one at text[start].

    Returns:
        The index of the matching closing bracket, or -1 if it is unbalanced
    """
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index
    return -1


class RegexClassParser:
    """Textual class model extractor based on regular expressions and bracket depth tracking."""

    available = True

    def parse(self, source_text: str) -> List[ClassDescriptor]:
        """
        Extract top-level class descriptors from Java source text.

        Args:
            source_text: The Java source

        Returns:
            List of ClassDescriptor objects in declaration order
        """
        masked = mask_source(source_text)
        classes = []
        position = 0

        while True:
            match = _TYPE_DECLARATION.search(masked, position)
            if not match:
                break

            class_name = match.group('name')
            cursor = self._skip_whitespace(masked, match.end())

            class_parameters = ''
            if cursor < len(masked) and masked[cursor] == '<':
                close = find_closing(masked, cursor, '<', '>')
                if close < 0:
                    break
                class_parameters = normalize_type(masked[cursor:close + 1])
                cursor = self._skip_whitespace(masked, close + 1)

            record_parameters = None
            if match.group('kind') == 'record' and cursor < len(masked) and masked[cursor] == '(':
                close = find_closing(masked, cursor, '(', ')')
                if close < 0:
                    break
                record_parameters = self._parse_parameters(masked[cursor + 1:close])
                cursor = close + 1

            body_start = masked.find('{', cursor)
            if body_start < 0:
                break
            body_end = find_closing(masked, body_start, '{', '}')
            if body_end < 0:
                body_end = len(masked)

            constructor, methods = self._parse_members(masked[body_start + 1:body_end], class_name)
            if constructor is None:
                constructor = record_parameters or ()

            classes.append(ClassDescriptor(
                class_name=class_name,
                access_modifier=access_modifier_of(match.group('modifiers').split()),
                class_parameters=class_parameters,
                constructor_parameters=constructor,
                public_methods=tuple(methods)
            ))

            position = body_end + 1

        return classes

    @staticmethod
    def _skip_whitespace(text: str, index: int) -> int:
        while index < len(text) and text[index].isspace():
            index += 1
        return index

    @staticmethod
    def _member_headers(body: str) -> List[str]:
        """
        Split a class body into member headers.

        A header is the text of a member declaration up to its block or its
        terminating semicolon; nested blocks are skipped entirely.
        """
        headers = []
        depth = 0
        parens = 0
        start = 0
        for index, char in enumerate(body):
            if char == '(':
                parens += 1
            elif char == ')':
                parens = max(parens - 1, 0)
            elif char == '{' and parens == 0:
                if depth == 0:
                    headers.append(body[start:index])
                depth += 1
            elif char == '}' and parens == 0:
                depth = max(depth - 1, 0)
                if depth == 0:
                    start = index + 1
            elif char == ';' and depth == 0 and parens == 0:
                headers.append(body[start:index])
                start = index + 1
        return headers

    def _parse_members(self, body: str, class_name: str):
        constructor = None
        methods = []

        for header in self._member_headers(body):
            header = _ANNOTATION.sub(' ', header)
            paren = header.find('(')
            # fields, initializers and anything else that isn't a callable declaration
            if paren < 0 or '=' in header[:paren]:
                continue
            close = find_closing(header, paren, '(', ')')
            if close < 0:
                continue
            name_match = _TRAILING_IDENTIFIER.search(header[:paren])
            if not name_match:
                continue

            name = name_match.group(1)
            modifiers = set()
            rest = header[:name_match.start()].strip()
            modifier_match = _MEMBER_MODIFIER.match(rest)
            while modifier_match:
                modifiers.add(modifier_match.group(1))
                rest = rest[modifier_match.end():]
                modifier_match = _MEMBER_MODIFIER.match(rest)

            if rest.startswith('<'):
                type_parameters_end = find_closing(rest, 0, '<', '>')
                if type_parameters_end < 0:
                    continue
                rest = rest[type_parameters_end + 1:]

            # nested type declarations (a record header looks like a call)
            if _NESTED_TYPE_KEYWORD.search(rest):
                continue

            return_type = normalize_type(rest)
            parameters = self._parse_parameters(header[paren + 1:close])

            if not return_type:
                if name == class_name and constructor is None:
                    constructor = parameters
            elif 'public' in modifiers and 'static' not in modifiers and name != class_name:
                methods.append(MethodSignature(name=name, return_type=return_type, parameters=parameters))

        return constructor, methods

    @staticmethod
    def _parse_parameters(text: str) -> Tuple[Parameter, ...]:
        parameters = []
        for part in split_top_level(text):
            part = _ANNOTATION.sub(' ', part)
            part = re.sub(r'\bfinal\b', ' ', part).strip()
            match = _PARAMETER_NAME.search(part)
            if not match:
                continue
            parameter = make_parameter(part[:match.start()] + match.group(2), match.group(1))
            if parameter:
                parameters.append(parameter)
        return tuple(parameters)


class TreeSitterClassParser:
    """Class model extractor using the tree-sitter Java grammar."""

    TYPE_DECLARATIONS = {
        'class_declaration',
        'interface_declaration',
        'enum_declaration',
        'record_declaration',
    }

    def __init__(self):
        """Initialize the TreeSitterClassParser."""
        self.language = None
        self.parser = None
        self._load_language()

    def _load_language(self):
        """Load the Java grammar from tree-sitter-language-pack."""
        try:
            self.language = tree_sitter_language_pack.get_language('java')
            self.parser = Parser(self.language)
        except Exception as e:
            print(f"Failed to load tree-sitter language java from language pack: {e}")
            self.language = None
            self.parser = None

    @property
    def available(self) -> bool:
        return self.parser is not None

    def parse(self, source_text: str) -> List[ClassDescriptor]:
        """
        Extract top-level class descriptors from Java source text.

        Args:
            source_text: The Java source

        Returns:
            List of ClassDescriptor objects in declaration order
        """
        if not self.available:
            return []

        source = source_text.encode('utf-8')
        tree = self.parser.parse(source)

        classes = []
        for node in tree.root_node.children:
            if node.type in self.TYPE_DECLARATIONS:
                descriptor = self._extract_class(node, source)
                if descriptor:
                    classes.append(descriptor)
        return classes

    @staticmethod
    def _text(node, source: bytes) -> str:
        return source[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    @staticmethod
    def _modifiers(node) -> List[str]:
        for child in node.children:
            if child.type == 'modifiers':
                return [modifier.type for modifier in child.children]
        return []

    def _extract_class(self, node, source: bytes) -> Optional[ClassDescriptor]:
        name_node = node.child_by_field_name('name')
        if name_node is None:
            return None
        class_name = self._text(name_node, source)

        type_parameters = node.child_by_field_name('type_parameters')
        class_parameters = normalize_type(self._text(type_parameters, source)) if type_parameters else ''

        constructor = None
        methods = []
        for member in self._members(node.child_by_field_name('body')):
            member_name = member.child_by_field_name('name')
            if member_name is None:
                continue
            name = self._text(member_name, source)

            if member.type == 'constructor_declaration':
                if constructor is None and name == class_name:
                    constructor = self._parameters(member.child_by_field_name('parameters'), source)
            elif member.type == 'method_declaration':
                modifiers = self._modifiers(member)
                if 'public' not in modifiers or 'static' in modifiers or name == class_name:
                    continue
                return_type = member.child_by_field_name('type')
                methods.append(MethodSignature(
                    name=name,
                    return_type=normalize_type(self._text(return_type, source)) if return_type else 'void',
                    parameters=self._parameters(member.child_by_field_name('parameters'), source)
                ))

        if constructor is None and node.type == 'record_declaration':
            constructor = self._parameters(node.child_by_field_name('parameters'), source)

        return ClassDescriptor(
            class_name=class_name,
            access_modifier=access_modifier_of(self._modifiers(node)),
            class_parameters=class_parameters,
            constructor_parameters=constructor or (),
            public_methods=tuple(methods)
        )

    @staticmethod
    def _members(body) -> list:
        if body is None:
            return []
        members = []
        for child in body.children:
            # enum constants come first, the regular members follow in this node
            if child.type == 'enum_body_declarations':
                members.extend(child.children)
            else:
                members.append(child)
        return members

    def _parameters(self, parameters_node, source: bytes) -> Tuple[Parameter, ...]:
        if parameters_node is None:
            return ()

        parameters = []
        for child in parameters_node.children:
            parameter = None
            if child.type == 'formal_parameter':
                type_node = child.child_by_field_name('type')
                name_node = child.child_by_field_name('name')
                dimensions = child.child_by_field_name('dimensions')
                if type_node is None or name_node is None:
                    continue
                type_text = self._text(type_node, source)
                if dimensions is not None:
                    type_text += self._text(dimensions, source)
                parameter = make_parameter(type_text, self._text(name_node, source))
            elif child.type == 'spread_parameter':
                declarator = None
                type_node = None
                for part in child.named_children:
                    if part.type == 'variable_declarator':
                        declarator = part
                    elif part.type != 'modifiers' and type_node is None:
                        type_node = part
                if declarator is None or type_node is None:
                    continue
                name_node = declarator.child_by_field_name('name') or declarator
                parameter = make_parameter(self._text(type_node, source) + '...', self._text(name_node, source))

            if parameter:
                parameters.append(parameter)
        return tuple(parameters)


class UnifiedParser:
    """Class model extractor that uses tree-sitter when available and the textual scanner otherwise."""

    def __init__(self, use_tree_sitter: bool = True):
        self.regex_parser = RegexClassParser()
        self.tree_sitter_parser = TreeSitterClassParser() if use_tree_sitter else None

        # Statistics tracking
        self.stats = {
            'parsed_sources': 0,
            'classes_found': 0,
            'parsing_errors': 0,
            'parsing_errors_details': {}
        }

    @property
    def backend(self):
        if self.tree_sitter_parser is not None and self.tree_sitter_parser.available:
            return self.tree_sitter_parser
        return self.regex_parser

    def parse(self, source_text: str) -> List[ClassDescriptor]:
        """
        Extract class descriptors from source text.

        Never raises on malformed input: a failing backend yields an empty list
        so callers fall back to the default scaffold.

        Args:
            source_text: The Java source

        Returns:
            List of ClassDescriptor objects, possibly empty
        """
        self.stats['parsed_sources'] += 1
        backend = self.backend
        try:
            classes = backend.parse(source_text)
        except Exception as e:
            print(f"Error parsing source with {type(backend).__name__}: {str(e)}")
            self._track_error(e)
            return []

        self.stats['classes_found'] += len(classes)
        return classes

    def parse_file(self, file_path: str) -> List[ClassDescriptor]:
        """
        Read a Java file and extract its class descriptors.

        Args:
            file_path: Path to the Java file

        Returns:
            List of ClassDescriptor objects, possibly empty

        Raises:
            OSError: If the file cannot be read
        """
        return self.parse(read_source_file(file_path))

    def _track_error(self, error: Exception):
        self.stats['parsing_errors'] += 1
        error_type = type(error).__name__
        details: Dict[str, int] = self.stats['parsing_errors_details']
        details[error_type] = details.get(error_type, 0) + 1


_default_parser = None


def get_default_parser() -> UnifiedParser:
    """Return a shared UnifiedParser, created on first use."""
    global _default_parser
    if _default_parser is None:
        _default_parser = UnifiedParser()
    return _default_parser
