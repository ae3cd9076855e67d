"""
Project Schema - A named, grouped flow graph and its export document.

Projects are exchanged as JSON documents in the editor's camelCase shape:

    {
      "meta": {"generated": "...", "app": "...", "version": "1.0"},
      "project": {
        "id": "proj_1718000000000",
        "name": "Bank Robbery",
        "group": "General",
        "createdAt": "...",
        "updatedAt": "...",
        "data": {"nodes": [...], "connections": [...]}
      }
    }
"""

import json
import re
import time
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from interactions.graph.edge import FlowGraph
from interactions.graph.node import NodePosition, StartNode

DEFAULT_GROUP = "General"
EXPORT_APP_NAME = "RealCity Dialogue Architect v2.1"
EXPORT_VERSION = "1.0"


def utc_now() -> str:
    """Current time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


class ProjectImportError(ValueError):
    """Raised when a document is not a valid project or export."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class Project(BaseModel):
    """A flow graph with its dashboard metadata."""

    id: str
    name: str
    group: str = DEFAULT_GROUP
    created_at: str = Field(default_factory=utc_now, alias="createdAt")
    updated_at: str = Field(default_factory=utc_now, alias="updatedAt")
    data: FlowGraph = Field(default_factory=FlowGraph)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @classmethod
    def new(cls, name: str, group: str = DEFAULT_GROUP) -> "Project":
        """Create a project seeded with a single START node."""
        return cls(
            id=f"proj_{time.time_ns() // 1_000_000}",
            name=name,
            group=group,
            data=FlowGraph(nodes=[StartNode(id="start", position=NodePosition(x=100, y=100))]),
        )

    def touch(self) -> None:
        """Mark the project as modified now."""
        self.updated_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportMeta(BaseModel):
    generated: str = Field(default_factory=utc_now)
    app: str = EXPORT_APP_NAME
    version: str = EXPORT_VERSION

    model_config = {"extra": "allow"}


class ProjectExport(BaseModel):
    """The export envelope written by the editor."""

    meta: ExportMeta = Field(default_factory=ExportMeta)
    project: Project

    model_config = {"extra": "allow"}


def export_project(project: Project) -> str:
    """Serialize a project inside an export envelope."""
    envelope = ProjectExport(project=project)
    return json.dumps(envelope.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2)


def export_filename(project: Project) -> str:
    """File name for an exported project, e.g. 'bank_robbery.json'."""
    slug = re.sub(r"\s+", "_", project.name).lower()
    return f"{slug}.json"


def _format_errors(error: ValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        field_path = ".".join(str(loc) for loc in err["loc"])
        messages.append(f"{field_path}: {err['msg']}")
    return messages


def load_export(data: str | bytes | dict[str, Any]) -> Project:
    """
    Load a project from an export envelope or a bare project document.

    Args:
        data: JSON text or an already parsed dict

    Returns:
        The validated Project

    Raises:
        ProjectImportError: If the JSON is malformed or does not match the schema
    """
    if isinstance(data, str | bytes):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ProjectImportError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProjectImportError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        if "project" in data:
            return ProjectExport.model_validate(data).project
        return Project.model_validate(data)
    except ValidationError as e:
        errors = _format_errors(e)
        raise ProjectImportError(f"Invalid project document: {'; '.join(errors)}", errors) from e
