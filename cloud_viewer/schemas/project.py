# File: cloud_viewer/schemas/project.py

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Documents are stored and served in camelCase; unknown keys are kept
    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="allow",
    )


class ProjectLocation(_CamelModel):
    latitude: float
    longitude: float
    source: Optional[str] = None
    address: Optional[str] = None
    confidence: Optional[str] = None


class ProjectCRS(_CamelModel):
    horizontal: Optional[str] = None
    vertical: Optional[str] = None
    geoid: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("geoid", "geoidModel"),
    )


class ProjectDocument(_CamelModel):
    """
    Metadata record for one point cloud project.

    Every field is optional on input: a POST replaces the stored document
    with exactly what was sent, plus the server-side updatedAt stamp.
    """

    job_number: Optional[str] = None
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    # older info.json files carry the misspelled key
    acquisition_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("acquisitionDate", "acquistionDate"),
    )
    description: Optional[str] = None
    status: Optional[str] = None
    location: Optional[ProjectLocation] = None
    crs: Optional[ProjectCRS] = None
    updated_at: Optional[str] = None

    def to_document(self) -> dict:
        """JSON-ready dict holding only the keys the caller actually sent."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ProjectSaveResponse(BaseModel):
    success: bool = True
    message: str = "Project info saved successfully"
    data: dict


class ProjectListResponse(BaseModel):
    items: list[str]
    total: int
