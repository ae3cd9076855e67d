"""
Project Store - Project and group storage with atomic writes.

Layout:
  {base_path}/
    ├── groups.json               # Ordered list of group names
    └── projects/
        └── {project_id}.json     # One project document each
"""

import asyncio
import json
import logging
from pathlib import Path

from interactions.schemas.project import DEFAULT_GROUP, Project
from interactions.utils.io import atomic_write

logger = logging.getLogger(__name__)


class ProjectNotFoundError(KeyError):
    """Raised when a project id is not in the store."""


class ProjectStore:
    """
    JSON-file storage for projects and dashboard groups.

    All methods are async; file I/O runs in a worker thread. Group edits are
    serialized with a lock so concurrent callers don't lose updates.
    """

    def __init__(self, base_path: Path | str):
        """
        Initialize project store.

        Args:
            base_path: Root directory (e.g., ~/.rc-interactions)
        """
        self.base_path = Path(base_path)
        self.projects_dir = self.base_path / "projects"
        self.groups_path = self.base_path / "groups.json"
        self._groups_lock = asyncio.Lock()

    def get_project_path(self, project_id: str) -> Path:
        return self.projects_dir / f"{project_id}.json"

    # === PROJECTS ===

    async def save_project(self, project: Project) -> None:
        """Atomically write a project and make sure its group exists."""

        def _write():
            self.projects_dir.mkdir(parents=True, exist_ok=True)
            with atomic_write(self.get_project_path(project.id)) as f:
                f.write(project.model_dump_json(by_alias=True, exclude_none=True, indent=2))

        await asyncio.to_thread(_write)
        await self.create_group(project.group)
        logger.debug(f"Saved project {project.id}")

    async def load_project(self, project_id: str) -> Project | None:
        """Read a project, or None if it doesn't exist."""

        def _read():
            path = self.get_project_path(project_id)
            if not path.exists():
                return None
            return Project.model_validate_json(path.read_text(encoding="utf-8"))

        return await asyncio.to_thread(_read)

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project. Returns True if it existed."""

        def _delete():
            path = self.get_project_path(project_id)
            if not path.exists():
                return False
            path.unlink()
            return True

        deleted = await asyncio.to_thread(_delete)
        if deleted:
            logger.info(f"Deleted project {project_id}")
        return deleted

    async def list_projects(
        self,
        group: str | None = None,
        query: str | None = None,
    ) -> list[Project]:
        """
        List projects, most recently updated first.

        Args:
            group: Only projects in this group
            query: Case-insensitive substring match on the project name

        Returns:
            Matching projects
        """

        def _scan():
            projects = []
            if not self.projects_dir.exists():
                return projects

            for path in self.projects_dir.glob("*.json"):
                try:
                    projects.append(Project.model_validate_json(path.read_text(encoding="utf-8")))
                except ValueError as e:
                    logger.warning(f"Skipping unreadable project file {path.name}: {e}")
            return projects

        projects = await asyncio.to_thread(_scan)

        if group is not None:
            projects = [p for p in projects if p.group == group]
        if query:
            needle = query.lower()
            projects = [p for p in projects if needle in p.name.lower()]

        projects.sort(key=lambda p: p.updated_at, reverse=True)
        return projects

    async def _require_project(self, project_id: str) -> Project:
        project = await self.load_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def rename_project(self, project_id: str, name: str) -> Project:
        project = await self._require_project(project_id)
        project.name = name
        project.touch()
        await self.save_project(project)
        return project

    async def move_project(self, project_id: str, group: str) -> Project:
        project = await self._require_project(project_id)
        project.group = group
        await self.save_project(project)
        return project

    # === GROUPS ===

    def _read_groups(self) -> list[str]:
        groups: list[str] = []
        if self.groups_path.exists():
            try:
                groups = json.loads(self.groups_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("groups.json is corrupt, starting from defaults")
                groups = []
        if DEFAULT_GROUP not in groups:
            groups.insert(0, DEFAULT_GROUP)
        return groups

    def _write_groups(self, groups: list[str]) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        with atomic_write(self.groups_path) as f:
            f.write(json.dumps(groups, indent=2))

    async def list_groups(self) -> list[str]:
        """All group names; always includes the default group."""
        return await asyncio.to_thread(self._read_groups)

    async def create_group(self, name: str) -> bool:
        """Add a group. Returns False if it already exists."""
        async with self._groups_lock:
            groups = await asyncio.to_thread(self._read_groups)
            if name in groups:
                return False
            groups.append(name)
            await asyncio.to_thread(self._write_groups, groups)
            return True

    async def delete_group(self, name: str) -> int:
        """
        Delete a group, moving its projects to the default group.

        Returns:
            Number of projects moved

        Raises:
            ValueError: If asked to delete the default group
        """
        if name == DEFAULT_GROUP:
            raise ValueError(f"The '{DEFAULT_GROUP}' group cannot be deleted")

        moved = 0
        for project in await self.list_projects(group=name):
            project.group = DEFAULT_GROUP
            await self.save_project(project)
            moved += 1

        async with self._groups_lock:
            groups = await asyncio.to_thread(self._read_groups)
            if name in groups:
                groups.remove(name)
                await asyncio.to_thread(self._write_groups, groups)

        logger.info(f"Deleted group '{name}', moved {moved} project(s) to '{DEFAULT_GROUP}'")
        return moved
