from .js_parser import JsSourceParser, ParsedSource, extract_vue_script, language_for_path

__all__ = [
    "JsSourceParser",
    "ParsedSource",
    "extract_vue_script",
    "language_for_path",
]
