from .import_resolver import ImportResolver, ResolveFn, clean_module_id, DEFAULT_EXTENSIONS

__all__ = ["ImportResolver", "ResolveFn", "clean_module_id", "DEFAULT_EXTENSIONS"]
