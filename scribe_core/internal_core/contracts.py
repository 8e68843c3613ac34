from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SectionStateRecord(BaseModel):
    """Persisted provenance for one note section; the text itself lives in the editor."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    edits: int = Field(default=0, ge=0)
    ins: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0, alias="del")
    prov_rle: List[Any] = Field(default_factory=list)

    @model_validator(mode="after")
    def _sync_edits(self) -> "SectionStateRecord":
        expected = self.ins + self.deletions
        if self.edits != expected:
            self.edits = expected
        return self

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TemplateComponent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    position: float = 0
    mapping_id: Optional[Union[int, str]] = None
    template_component_mapping_id: Optional[Union[int, str]] = None
    id: Optional[Union[int, str]] = None

    def resolved_mapping_id(self) -> Optional[Union[int, str]]:
        for candidate in (self.mapping_id, self.template_component_mapping_id, self.id):
            if candidate is not None:
                return candidate
        return None


class SectionRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    template_component_mapping_id: Union[int, str]
    section: str
    text: str
    edit_count: int = Field(ge=0)
