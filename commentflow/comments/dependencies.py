"""FastAPI dependencies for the comment workflow.

Provides dependency injection for:
- Comment and report workflows
- Commentable entity registry
- Error conversion
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from commentflow.auth.schemas import AuthenticatedUser

from .contracts import Identity
from .errors import CommentError
from .reports import ReportWorkflow
from .repository import CassandraRelatedEntityRepository
from .workflow import CommentWorkflow


def _from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not available",
        )
    return service


async def get_comment_workflow(request: Request) -> CommentWorkflow:
    """Get comment workflow from app state."""
    return _from_state(request, "comment_workflow", "Comment service")


async def get_report_workflow(request: Request) -> ReportWorkflow:
    """Get report workflow from app state."""
    return _from_state(request, "report_workflow", "Report service")


async def get_related_entities(request: Request) -> CassandraRelatedEntityRepository:
    """Get commentable entity registry from app state."""
    return _from_state(request, "related_entities", "Entity registry")


# Type aliases for dependency injection
CommentWorkflowDep = Annotated[CommentWorkflow, Depends(get_comment_workflow)]
ReportWorkflowDep = Annotated[ReportWorkflow, Depends(get_report_workflow)]
RelatedEntitiesDep = Annotated[
    CassandraRelatedEntityRepository, Depends(get_related_entities)
]


def identity_from_user(user: AuthenticatedUser | None) -> Identity | None:
    """Convert the token user into the workflow identity."""
    if user is None:
        return None
    return Identity(
        id=user.id,
        document_id=user.document_id,
        username=user.username,
        email=user.email,
        role=user.role,
    )


def handle_comment_error(error: CommentError) -> HTTPException:
    """Convert comment errors to HTTP exceptions."""
    return HTTPException(status_code=error.status_code, detail=error.message)
