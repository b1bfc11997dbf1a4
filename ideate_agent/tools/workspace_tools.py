"""
Workspace and document executors.

All tools of a toolset share one repository, and every operation is scoped to
the acting identity: a user only sees and changes resources they own.
Mutations are reported to the ResourceNotifier handed to the toolset.
"""
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ideate_agent.core.interfaces import ResourceNotifier
from ideate_agent.core.logging import logger
from ideate_agent.core.types import ResourceChange, utc_now
from ideate_agent.tools.base import BaseTool


class ResourceNotFound(LookupError):
    pass


@dataclass
class Workspace:
    id: str
    owner: str
    name: str
    description: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


@dataclass
class Document:
    id: str
    owner: str
    title: str
    content: str = ""
    workspace_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


class WorkspaceRepository:
    def __init__(self):
        self.workspaces: Dict[str, Workspace] = {}
        self.documents: Dict[str, Document] = {}

    def _workspace(self, workspace_id: str, owner: str) -> Workspace:
        ws = self.workspaces.get(workspace_id)
        if ws is None or ws.owner != owner:
            raise ResourceNotFound(f"Workspace not found: {workspace_id}")
        return ws

    def _document(self, document_id: str, owner: str) -> Document:
        doc = self.documents.get(document_id)
        if doc is None or doc.owner != owner:
            raise ResourceNotFound(f"Document not found: {document_id}")
        return doc

    def list_workspaces(self, owner: str) -> List[Workspace]:
        return [ws for ws in self.workspaces.values() if ws.owner == owner]

    def create_workspace(self, owner: str, name: str, description: str = "") -> Workspace:
        if not name.strip():
            raise ValueError("Workspace name cannot be empty")
        ws = Workspace(id=f"ws-{uuid.uuid4().hex[:8]}", owner=owner, name=name.strip(), description=description)
        self.workspaces[ws.id] = ws
        return ws

    def delete_workspace(self, owner: str, workspace_id: str) -> Workspace:
        ws = self._workspace(workspace_id, owner)
        del self.workspaces[ws.id]
        # documents outlive their workspace and become unfiled
        for doc in self.documents.values():
            if doc.workspace_id == ws.id:
                doc.workspace_id = None
        return ws

    def list_documents(self, owner: str, workspace_id: Optional[str] = None) -> List[Document]:
        if workspace_id is not None:
            self._workspace(workspace_id, owner)
        return [
            d
            for d in self.documents.values()
            if d.owner == owner and (workspace_id is None or d.workspace_id == workspace_id)
        ]

    def create_document(
        self, owner: str, title: str, workspace_id: Optional[str] = None, content: str = ""
    ) -> Document:
        if workspace_id is not None:
            self._workspace(workspace_id, owner)
        doc = Document(
            id=f"doc-{uuid.uuid4().hex[:8]}",
            owner=owner,
            title=title.strip() or "Untitled Document",
            content=content,
            workspace_id=workspace_id,
        )
        self.documents[doc.id] = doc
        return doc

    def get_document(self, owner: str, document_id: str) -> Document:
        return self._document(document_id, owner)

    def update_document(
        self, owner: str, document_id: str, title: Optional[str] = None, content: Optional[str] = None
    ) -> Document:
        doc = self._document(document_id, owner)
        if title is not None:
            doc.title = title.strip() or doc.title
        if content is not None:
            doc.content = content
        doc.updated_at = utc_now()
        return doc


class LoggingNotifier(ResourceNotifier):
    async def resource_changed(self, change: ResourceChange) -> None:
        logger.info(
            f"Resource {change.action}: {change.kind} {change.resource_id} by {change.acting_identity}"
        )


class _WorkspaceTool(BaseTool):
    def __init__(self, repository: WorkspaceRepository, notifier: Optional[ResourceNotifier] = None):
        self.repository = repository
        self.notifier = notifier

    async def _notify(self, kind: str, action: str, resource: Any, acting_identity: str) -> None:
        if self.notifier is None:
            return
        change = ResourceChange(
            kind=kind,
            action=action,
            resource_id=resource.id,
            acting_identity=acting_identity,
            resource=asdict(resource),
        )
        try:
            await self.notifier.resource_changed(change)
        except Exception:
            # the mutation is already committed; a broken listener must not turn it into a failure
            logger.exception(f"Notifier failed for {kind} {action} {resource.id}")


class WorkspaceListTool(_WorkspaceTool):
    """List the workspaces owned by the current user."""

    tool_name = "workspace_list"

    async def run(self, acting_identity: str) -> dict:
        workspaces = self.repository.list_workspaces(acting_identity)
        return {"success": True, "data": [asdict(ws) for ws in workspaces]}


class WorkspaceCreateTool(_WorkspaceTool):
    """Create a new workspace for the current user."""

    tool_name = "workspace_create"

    async def run(self, acting_identity: str, name: str, description: str = "") -> dict:
        """
        Args:
            name: Display name of the workspace.
            description: Optional longer description of what the workspace is for.
        """
        ws = self.repository.create_workspace(acting_identity, name, description)
        await self._notify("workspace", "created", ws, acting_identity)
        return {"success": True, "data": asdict(ws)}


class WorkspaceDeleteTool(_WorkspaceTool):
    """Delete a workspace. Its documents are kept and become unfiled."""

    tool_name = "workspace_delete"

    async def run(self, acting_identity: str, workspace_id: str) -> dict:
        """
        Args:
            workspace_id: ID of the workspace to delete (from workspace_list).
        """
        ws = self.repository.delete_workspace(acting_identity, workspace_id)
        await self._notify("workspace", "deleted", ws, acting_identity)
        return {"success": True, "data": {"deleted": ws.id}}


class DocumentListTool(_WorkspaceTool):
    """List documents, optionally only those in one workspace."""

    tool_name = "document_list"

    async def run(self, acting_identity: str, workspace_id: Optional[str] = None) -> dict:
        """
        Args:
            workspace_id: Only list documents in this workspace.
        """
        docs = self.repository.list_documents(acting_identity, workspace_id)
        summaries = [{"id": d.id, "title": d.title, "workspace_id": d.workspace_id} for d in docs]
        return {"success": True, "data": summaries}


class DocumentCreateTool(_WorkspaceTool):
    """Create a document, optionally inside a workspace."""

    tool_name = "document_create"

    async def run(
        self,
        acting_identity: str,
        title: str,
        workspace_id: Optional[str] = None,
        content: str = "",
    ) -> dict:
        """
        Args:
            title: Title of the new document.
            workspace_id: Workspace to file the document in.
            content: Initial markdown content.
        """
        doc = self.repository.create_document(acting_identity, title, workspace_id, content)
        await self._notify("document", "created", doc, acting_identity)
        return {"success": True, "data": asdict(doc)}


class DocumentGetTool(_WorkspaceTool):
    """Read a document including its full content."""

    tool_name = "document_get"

    async def run(self, acting_identity: str, document_id: str) -> dict:
        """
        Args:
            document_id: ID of the document to read.
        """
        doc = self.repository.get_document(acting_identity, document_id)
        return {"success": True, "data": asdict(doc)}


class DocumentUpdateTool(_WorkspaceTool):
    """Change the title and/or content of a document."""

    tool_name = "document_update"

    async def run(
        self,
        acting_identity: str,
        document_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> dict:
        """
        Args:
            document_id: ID of the document to change.
            title: New title.
            content: New markdown content, replacing the old content.
        """
        doc = self.repository.update_document(acting_identity, document_id, title, content)
        await self._notify("document", "updated", doc, acting_identity)
        return {"success": True, "data": asdict(doc)}


TOOL_CLASSES = (
    WorkspaceListTool,
    WorkspaceCreateTool,
    WorkspaceDeleteTool,
    DocumentListTool,
    DocumentCreateTool,
    DocumentGetTool,
    DocumentUpdateTool,
)


class WorkspaceToolset:
    """Builds every workspace/document tool over one shared repository."""

    def __init__(
        self,
        notifier: Optional[ResourceNotifier] = None,
        repository: Optional[WorkspaceRepository] = None,
    ):
        self.repository = repository or WorkspaceRepository()
        self.notifier = notifier

    def tools(self) -> List[BaseTool]:
        return [cls(self.repository, self.notifier) for cls in TOOL_CLASSES]
