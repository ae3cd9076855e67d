"""Document schemas for projects and their export envelope."""

from interactions.schemas.project import (
    DEFAULT_GROUP,
    ExportMeta,
    Project,
    ProjectExport,
    ProjectImportError,
    export_filename,
    export_project,
    load_export,
)

__all__ = [
    "DEFAULT_GROUP",
    "Project",
    "ProjectExport",
    "ExportMeta",
    "ProjectImportError",
    "export_project",
    "export_filename",
    "load_export",
]
