# src/specs/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class ParsedRoute(BaseModel):
    path: str = Field(..., description="Route path as written in the router, e.g. 'about' or '/movies/:id'.")
    full_path: str = Field(..., description="Path joined with every ancestor route path.")
    entry_module_id: Optional[str] = Field(None, description="Resolved module id of the route component, or None when it could not be resolved.")
    is_dynamic: bool = Field(False, description="True when the component is loaded through an import() call.")
    component_identifier: Optional[str] = Field(None, description="Local identifier used for statically imported components.")


class RouterExtraction(BaseModel):
    routes: List[ParsedRoute] = Field(default_factory=list)
    static_imports: Dict[str, str] = Field(
        default_factory=dict,
        description="Local import name -> resolved module id, merged over every router file."
    )


class BundleChunk(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName", description="Emitted chunk file name relative to the output dir.")
    modules: List[str] = Field(default_factory=list, description="Original module ids bundled into this chunk.")
    css: List[str] = Field(default_factory=list, description="CSS assets imported by this chunk.")
    imports: List[str] = Field(default_factory=list, description="Chunk file names statically imported by this chunk.")
    dynamic_imports: List[str] = Field(default_factory=list, alias="dynamicImports")
    is_entry: bool = Field(False, alias="isEntry")
    is_dynamic_entry: bool = Field(False, alias="isDynamicEntry")


if __name__ == '__main__':
    example_chunk = BundleChunk(
        fileName="assets/About-abc.js",
        modules=["/app/src/ui/views/About.vue"],
        css=["assets/About-abc.css"],
        isDynamicEntry=True,
    )
    print(example_chunk.model_dump_json(indent=2, by_alias=True))
