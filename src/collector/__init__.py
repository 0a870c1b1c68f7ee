from .dynamic_imports import (
    DynamicImportsCollector,
    collect_dynamic_imports,
    should_process_file,
)
from .ioc_usage import collect_ioc_dep_ids, load_ioc_deps_file, local_define_deps_names, merge_ioc_deps

__all__ = [
    "DynamicImportsCollector",
    "collect_dynamic_imports",
    "should_process_file",
    "collect_ioc_dep_ids",
    "load_ioc_deps_file",
    "local_define_deps_names",
    "merge_ioc_deps",
]
