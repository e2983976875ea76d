"""
Asset domain models.

Represents embedded binary assets (images) discovered in a document and the
position each one is anchored to.

Dependencies: pydantic
System role: Output of AssetExtractionTask, enriched by AnchoringTask
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResolutionMethod(str, Enum):
    """Strategy that produced an asset position."""

    DIRECT_REFERENCE = "direct_reference"
    RUN_EMBEDDING = "run_embedding"
    STRUCTURAL_DRAWING = "structural_drawing"
    SEQUENTIAL_FALLBACK = "sequential_fallback"
    UNASSIGNED = "unassigned"


class AssetPosition(BaseModel):
    """Where an asset sits in the paragraph sequence."""

    model_config = ConfigDict(frozen=True)

    paragraph_index: int | None = Field(default=None, description="Anchoring paragraph, None when unassigned")
    run_index: int | None = Field(default=None, description="Run referencing the asset, when known")
    char_offset_in_paragraph: int = Field(default=0, ge=0)
    surrounding_text_context: str = Field(default="", description="Neighbouring paragraph texts")
    resolution_method: ResolutionMethod = ResolutionMethod.UNASSIGNED

    @property
    def is_assigned(self) -> bool:
        return self.paragraph_index is not None


class Asset(BaseModel):
    """Embedded binary asset; immutable once positioned."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    index: int = Field(ge=0, description="Discovery order after enumeration merge")
    file_name: str = Field(description="Part file name or generated fallback name")
    byte_format: str = Field(default="png", description="Image format extension, e.g. png, jpg")
    raw_bytes: bytes = Field(repr=False, description="Asset payload")
    content_hash: str = Field(description="SHA-256 hex digest of raw_bytes")
    content_type: str | None = Field(default=None, description="MIME type declared by the container")
    part_name: str | None = Field(default=None, description="Package part name, e.g. /word/media/image1.png")
    relationship_ids: list[str] = Field(
        default_factory=list,
        description="Relationship ids that target this asset's part",
    )
    width: int | None = Field(default=None, ge=0, description="Pixel width when the image header is readable")
    height: int | None = Field(default=None, ge=0, description="Pixel height when the image header is readable")
    position: AssetPosition | None = Field(default=None, description="Set by the anchoring resolver")

    @property
    def is_anchored(self) -> bool:
        return self.position is not None and self.position.is_assigned

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.raw_bytes)

    def with_position(self, position: AssetPosition) -> "Asset":
        """Return a copy of this asset carrying the given position."""
        return self.model_copy(update={"position": position})


class AnchorMap(BaseModel):
    """Paragraph index to positioned assets, plus the unassigned bucket."""

    model_config = ConfigDict(frozen=True)

    anchors: dict[int, list[Asset]] = Field(default_factory=dict)
    unassigned: list[Asset] = Field(default_factory=list)

    def assets_for(self, paragraph_index: int) -> list[Asset]:
        return self.anchors.get(paragraph_index, [])

    @property
    def anchored_count(self) -> int:
        return sum(len(assets) for assets in self.anchors.values())

    @property
    def total_count(self) -> int:
        return self.anchored_count + len(self.unassigned)
