"""
Pydantic schemas for the Constellation Graph backend.

This module contains all data validation and serialization models used
throughout the application, following Pydantic V2 syntax.

Graph models serialize with the camelCase field names the frontend expects
(``sourcePapers``, ``finalWeight``...), while keyword records keep the
``artifact_role`` spelling used by the keyword store.
"""

from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


# Supporting Enums and Types
Orientation = Literal["exploratory", "critical", "problem_solving", "constructive"]
ArtifactRole = Literal[
    "probe",
    "critique_device",
    "generative_construct",
    "solution_system",
    "epistemic_mediator",
]
PipelineRole = Literal["rq_trigger", "method_bias", "contribution_frame", "tone_modifier"]
EdgeType = Literal["reinforces", "extends", "contextualizes", "challenges"]


class RawKeywordRecord(BaseModel):
    """
    A single keyword occurrence as delivered by the keyword store.

    Several records may carry the same term (e.g. the same concept extracted
    from different papers); the graph engine folds them into one node.
    """
    id: str = Field(..., description="Unique record id (Notion page id)")
    term: str = Field(..., description="Display text of the keyword")
    orientation: Orientation = Field(..., description="Epistemic stance of the keyword")
    artifact_role: ArtifactRole = Field(..., description="Kind of research artifact it relates to")
    weight: float = Field(default=1.0, description="Curator weight, conventionally 0-1")
    active: bool = Field(default=True, description="Whether the keyword is switched on")
    notes: str | None = Field(default=None, description="Free-form curator notes")
    source: str | None = Field(default=None, description="Provenance label, e.g. a paper id")


class StoredKeyword(RawKeywordRecord):
    """Keyword as stored in Notion, with store-only metadata."""
    pipeline_role: PipelineRole | None = Field(default=None, description="Framing pipeline role")
    updated_by: str | None = Field(default=None, description="Who last edited the row")

    def to_record(self) -> RawKeywordRecord:
        """Drop store-only metadata for graph building."""
        return RawKeywordRecord(**self.model_dump(exclude={"pipeline_role", "updated_by"}))


class GraphNode(BaseModel):
    """
    Canonical node for one normalized term.

    Categorical fields and id come from the first record seen for the term;
    weight, active, frequency and sourcePapers aggregate over all of them.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    term: str
    orientation: Orientation
    artifact_role: ArtifactRole
    weight: float
    active: bool
    frequency: int = Field(..., ge=1, description="Number of records merged into this node")
    source_papers: list[str] = Field(
        default_factory=list,
        alias="sourcePapers",
        description="Distinct non-empty sources among merged records",
    )
    notes: str | None = None


class EdgeWeights(BaseModel):
    """
    Per-channel evidence for one edge, each in [0, 1].

    ``semantic``, ``user_history`` and ``manual`` have no producer yet and stay
    at 0; they are part of the schema so future signals can fill them in.
    """
    model_config = ConfigDict(populate_by_name=True)

    co_occurrence: float = Field(default=0.0, ge=0.0, le=1.0, alias="coOccurrence")
    semantic: float = Field(default=0.0, ge=0.0, le=1.0)
    role_prior: float = Field(default=0.0, ge=0.0, le=1.0, alias="rolePrior")
    user_history: float = Field(default=0.0, ge=0.0, le=1.0, alias="userHistory")
    manual: float = Field(default=0.0, ge=0.0, le=1.0)


class GraphEdge(BaseModel):
    """Undirected weighted edge; ``source`` is always the smaller node id."""
    model_config = ConfigDict(populate_by_name=True)

    source: str
    target: str
    weights: EdgeWeights = Field(default_factory=EdgeWeights)
    final_weight: float = Field(default=0.0, alias="finalWeight")
    edge_type: EdgeType = Field(..., alias="edgeType")
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 UTC timestamp")
    updated_at: str = Field(..., alias="updatedAt", description="ISO-8601 UTC timestamp")


class ConstellationGraph(BaseModel):
    """The full graph returned to callers."""
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class Neighbor(BaseModel):
    """One ranked neighbor of a node."""
    model_config = ConfigDict(populate_by_name=True)

    neighbor_id: str = Field(..., alias="neighborId")
    weight: float
    edge_type: EdgeType = Field(..., alias="edgeType")


# Engine configuration
class BlendWeights(BaseModel):
    """Coefficients of the weighted average over evidence channels."""
    model_config = ConfigDict(populate_by_name=True)

    co_occurrence: float = Field(default=0.4, ge=0.0, alias="coOccurrence")
    semantic: float = Field(default=0.15, ge=0.0)
    role_prior: float = Field(default=0.15, ge=0.0, alias="rolePrior")
    user_history: float = Field(default=0.2, ge=0.0, alias="userHistory")
    manual: float = Field(default=0.1, ge=0.0)


class GraphConfig(BaseModel):
    """Tuning knobs for building, decaying and pruning the constellation graph."""
    blend: BlendWeights = Field(default_factory=BlendWeights)
    half_life_days: float = Field(
        default=30.0,
        gt=0.0,
        description="Days after which an edge's weight is halved"
    )
    min_weight: float = Field(
        default=0.05,
        ge=0.0,
        description="Edges below this final weight are pruned"
    )
    max_degree: int = Field(
        default=8,
        ge=0,
        description="Maximum surviving edges per node"
    )
    role_prior: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Evidence assigned to pairs sharing an artifact role"
    )


# Request/Response Models for API
class NeighborsResponse(BaseModel):
    """Response from the /graph/neighbors/{node_id} endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="nodeId")
    neighbors: list[Neighbor] = Field(default_factory=list)


class KeywordCreate(BaseModel):
    """A suggested keyword to write to the store (created inactive)."""
    term: str = Field(..., min_length=1)
    orientation: Orientation
    artifact_role: ArtifactRole
    weight: float | None = Field(default=None, description="Defaults to 1.0 in the store")
    notes: str | None = None
    source: str | None = None


class KeywordCreateRequest(BaseModel):
    """Request body for POST /keywords."""
    keywords: list[KeywordCreate] = Field(default_factory=list)


class KeywordUpdate(BaseModel):
    """Partial update for an existing keyword; only set fields are written."""
    active: bool | None = None
    weight: float | None = None
    orientation: Orientation | None = None
    artifact_role: ArtifactRole | None = None
    pipeline_role: PipelineRole | None = None
    notes: str | None = None


class KeywordListResponse(BaseModel):
    """Response from GET /keywords."""
    keywords: list[StoredKeyword] = Field(default_factory=list)
    count: int = Field(..., ge=0)


class KeywordCreateResponse(BaseModel):
    """Response from POST /keywords."""
    model_config = ConfigDict(populate_by_name=True)

    created: int = Field(..., ge=0)
    page_ids: list[str] = Field(default_factory=list, alias="pageIds")


class HealthResponse(BaseModel):
    """Response from GET /health."""
    status: Literal["ok"] = "ok"
    timestamp: str
