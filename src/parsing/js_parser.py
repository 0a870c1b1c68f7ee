import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

SCRIPT_EXTENSIONS = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

# Quoted attribute values may contain '>', e.g. generic="T extends Record<string, any>"
_VUE_SCRIPT_BLOCK_RE = re.compile(
    r"""<script\b((?:[^>"']|"[^"]*"|'[^']*')*)>(.*?)</script\s*>""", re.DOTALL | re.IGNORECASE
)
_VUE_LANG_ATTR_RE = re.compile(r"""\blang\s*=\s*["']([^"']+)["']""")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}

# Expression wrappers that do not change which value is produced.
_TRANSPARENT_WRAPPERS = {"parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"}


@dataclass
class ParsedSource:
    source_text: str
    source_bytes: bytes
    language: str
    tree: Optional[Tree] = None
    has_errors: bool = False
    error_message: Optional[str] = None

    @property
    def root(self) -> Optional[Node]:
        return self.tree.root_node if self.tree is not None else None


def language_for_path(path: Union[str, Path]) -> Optional[str]:
    """Grammar name for a script path (any ?query suffix ignored), or None if it is not a script."""
    suffix = Path(str(path).split("?", 1)[0]).suffix.lower()
    if suffix == ".vue":
        return "vue"
    return SCRIPT_EXTENSIONS.get(suffix)


def extract_vue_script(sfc_text: str) -> Tuple[str, str]:
    """
    Pulls the <script> and <script setup> blocks out of a Vue single-file component.

    Returns:
        (script_text, language). Blocks are joined with a newline; language is taken
        from the first block carrying a lang attribute and defaults to javascript.
    """
    blocks: List[str] = []
    language = "javascript"
    lang_seen = False
    for match in _VUE_SCRIPT_BLOCK_RE.finditer(sfc_text):
        attrs, body = match.group(1), match.group(2)
        blocks.append(body)
        lang_match = _VUE_LANG_ATTR_RE.search(attrs)
        if lang_match and not lang_seen:
            lang_seen = True
            lang = lang_match.group(1).lower()
            if lang == "tsx":
                language = "tsx"
            elif lang in ("ts", "typescript"):
                language = "typescript"
    return "\n".join(blocks), language


class JsSourceParser:
    """Tree-sitter backed parser for JavaScript, TypeScript and TSX sources."""

    def __init__(self):
        self._languages: Dict[str, Language] = {
            "javascript": Language(tree_sitter_javascript.language()),
            "typescript": Language(tree_sitter_typescript.language_typescript()),
            "tsx": Language(tree_sitter_typescript.language_tsx()),
        }
        self._parsers: Dict[str, Parser] = {}

    def _get_parser(self, language: str) -> Parser:
        parser = self._parsers.get(language)
        if parser is None:
            if language not in self._languages:
                raise ValueError(f"Unsupported script language: {language}")
            parser = Parser(self._languages[language])
            self._parsers[language] = parser
        return parser

    def parse(self, source_text: str, language: str = "typescript") -> ParsedSource:
        source_bytes = source_text.encode("utf-8")
        result = ParsedSource(source_text=source_text, source_bytes=source_bytes, language=language)
        try:
            result.tree = self._get_parser(language).parse(source_bytes)
        except ValueError as e:
            result.has_errors = True
            result.error_message = str(e)
            return result
        if result.tree.root_node.has_error:
            result.has_errors = True
            error_node = find_first(result.tree.root_node, lambda n: n.type == "ERROR" or n.is_missing)[1]
            if error_node is not None:
                row, col = error_node.start_point
                result.error_message = f"Syntax error near line {row + 1}, column {col + 1}"
            else:
                result.error_message = "Syntax error"
        return result

    def parse_file(self, file_path: Union[str, Path]) -> ParsedSource:
        """
        Reads and parses a script or Vue SFC file. Read failures are reported through
        has_errors instead of raising, matching how syntax errors are reported.
        """
        path = Path(file_path)
        language = language_for_path(path) or "javascript"
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return ParsedSource(source_text="", source_bytes=b"", language=language,
                                has_errors=True, error_message=f"File read error: {e}")
        if language == "vue":
            text, language = extract_vue_script(text)
        return self.parse(text, language)


# --- Node helpers ---

def iter_nodes(root: Node) -> Iterator[Node]:
    """Pre-order walk using an explicit stack."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_first(root: Node, predicate: Callable[[Node], bool]) -> Tuple[bool, Optional[Node]]:
    for node in iter_nodes(root):
        if predicate(node):
            return True, node
    return False, None


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def unwrap_expression(node: Optional[Node]) -> Optional[Node]:
    """Strips parentheses and TypeScript `as` / `satisfies` / `!` wrappers."""
    while node is not None and node.type in _TRANSPARENT_WRAPPERS:
        inner = next((child for child in node.named_children if child.type != "comment"), None)
        if inner is None:
            break
        node = inner
    return node


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _SIMPLE_ESCAPES.get(m.group(1), m.group(1)), text)


def string_literal_value(node: Optional[Node]) -> Optional[str]:
    """
    Value of a string literal or of a template literal without ${} substitutions.
    Interpolated templates cannot be resolved statically and yield None.
    """
    node = unwrap_expression(node)
    if node is None:
        return None
    if node.type == "string":
        return _unescape(node_text(node)[1:-1])
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return _unescape(node_text(node)[1:-1])
    return None


def is_dynamic_import_call(node: Node) -> bool:
    if node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    if callee is not None:
        return callee.type == "import"
    # Grammar versions without the `function` field expose the keyword as the first child.
    return node.child_count > 0 and node.children[0].type == "import"


def call_arguments(node: Node) -> List[Node]:
    args = node.child_by_field_name("arguments")
    if args is None:
        args = next((child for child in node.children if child.type == "arguments"), None)
    if args is None:
        return []
    return [child for child in args.named_children if child.type != "comment"]


def dynamic_import_specifier(node: Node) -> Optional[str]:
    """Literal specifier of an import() call, or None when it is computed."""
    args = call_arguments(node)
    if not args:
        return None
    return string_literal_value(args[0])


def is_import_meta_glob(node: Node) -> Optional[str]:
    """Returns 'glob' or 'globEager' for import.meta.glob*(...) calls, else None."""
    if node.type != "call_expression":
        return None
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    obj = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    if node_text(obj).replace(" ", "") != "import.meta":
        return None
    method = node_text(prop)
    return method if method in ("glob", "globEager") else None


def callee_name(node: Node) -> Optional[str]:
    """Identifier name of a plain `fn(...)` call's callee; member calls yield None."""
    callee = unwrap_expression(node.child_by_field_name("function"))
    if callee is not None and callee.type == "identifier":
        return node_text(callee)
    return None


def object_properties(node: Optional[Node]) -> Dict[str, Node]:
    """
    Maps property names to value nodes for an object literal. Shorthand properties map
    to their own identifier node; computed keys and spreads are left out.
    """
    node = unwrap_expression(node)
    props: Dict[str, Node] = {}
    if node is None or node.type != "object":
        return props
    for child in node.named_children:
        if child.type == "pair":
            key = child.child_by_field_name("key")
            value = child.child_by_field_name("value")
            if key is None or value is None:
                continue
            if key.type in ("property_identifier", "identifier"):
                props[node_text(key)] = value
            elif key.type == "string":
                key_value = string_literal_value(key)
                if key_value is not None:
                    props[key_value] = value
        elif child.type == "shorthand_property_identifier":
            props[node_text(child)] = child
    return props


def array_elements(node: Optional[Node]) -> List[Node]:
    node = unwrap_expression(node)
    if node is None or node.type != "array":
        return []
    return [child for child in node.named_children if child.type != "comment"]


def top_level_const_values(root: Node) -> Dict[str, Node]:
    """Initializer nodes of top-level (optionally exported) variable declarations, by name."""
    values: Dict[str, Node] = {}
    for statement in root.named_children:
        declaration = statement
        if statement.type == "export_statement":
            declaration = statement.child_by_field_name("declaration")
        if declaration is None or declaration.type not in ("lexical_declaration", "variable_declaration"):
            continue
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is not None and value is not None and name.type == "identifier":
                values[node_text(name)] = value
    return values
