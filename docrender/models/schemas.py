"""
Pydantic Models and Schemas
===========================

Core data models for render requests, artifacts and API responses.
Wire names follow the public JSON contract (camelCase); Python attributes are snake_case.
"""

from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from enum import Enum, IntEnum
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums
class OutputFormat(str, Enum):
    """Supported artifact formats."""
    HTML = "html"
    PDF = "pdf"


class DependencyKind(IntEnum):
    """External resource kinds injected into the document head."""
    STYLESHEET = 0
    SCRIPT = 1


MEDIA_TYPES = {
    OutputFormat.HTML: "text/html; charset=utf-8",
    OutputFormat.PDF: "application/pdf",
}


# Request Models
class Dependency(BaseModel):
    """External CSS or script reference."""
    model_config = ConfigDict(populate_by_name=True)

    # Any integer is accepted; kinds outside DependencyKind are skipped during assembly
    kind: int = Field(..., alias="type", description="0 = stylesheet, 1 = script")
    url: Optional[str] = Field(None, description="Resource URL")

    @property
    def dependency_kind(self) -> Optional[DependencyKind]:
        try:
            return DependencyKind(self.kind)
        except ValueError:
            return None


class RenderRequest(BaseModel):
    """Document generation request."""
    model_config = ConfigDict(populate_by_name=True)

    dependencies: List[Dependency] = Field(default_factory=list)
    layout: Optional[str] = Field(None, description="Base64 encoded layout template")
    data: Dict[str, Any] = Field(default_factory=dict, description="Template context")
    file_format: str = Field("pdf", alias="fileFormat", description="'pdf' or 'html'")
    pdf_options: Optional[Dict[str, Any]] = Field(None, alias="pdfOptions")

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
        """Accept the template data either as an object or as a JSON string."""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"data is not valid JSON: {e}")
        if not isinstance(v, dict):
            raise ValueError("data must be a JSON object")
        return v

    @field_validator("dependencies", mode="before")
    @classmethod
    def default_dependencies(cls, v: Any) -> Any:
        return [] if v is None else v


# Result Models
class DependencyCheckFailure(BaseModel):
    """Unreachable dependency; reported, never fatal."""
    url: str
    reason: str


class RenderArtifact(BaseModel):
    """Final render output."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: Union[bytes, str]
    output_format: OutputFormat
    page_count: int = Field(..., ge=1, description="Approximate page count")
    dependency_failures: List[DependencyCheckFailure] = Field(default_factory=list)
    duration: float = Field(0.0, description="Render duration in seconds")

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self.output_format]


# API Response Models
class HealthStatus(BaseModel):
    """Health check response."""
    model_config = ConfigDict(populate_by_name=True)

    status: str
    uptime: float = Field(..., description="Service uptime in seconds")
    browser_uptime: Optional[float] = Field(
        None, alias="browserUptime", description="Current browser instance uptime in seconds"
    )


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str
    error_code: str
    stack: Optional[str] = None
    request_id: Optional[str] = None


class PayloadRecord(BaseModel):
    """Persisted request snapshot summary."""
    id: str
    created_at: datetime
    size: int
