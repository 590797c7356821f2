"""Approval policy for new comments."""

from .config import ConfigKey
from .contracts import ConfigProvider
from .errors import InvalidApprovalStatusError
from .models import ApprovalStatus, RelatedEntity


class ApprovalPolicy:
    """Decide the initial approval status of a comment.

    Approval is required when the entity type is listed in the
    ``approval_flow`` configuration or the entity itself asks for it.
    """

    def __init__(self, config: ConfigProvider):
        self.config = config

    def requires_approval(self, uid: str, entity: RelatedEntity | None) -> bool:
        approval_flow = self.config.get(ConfigKey.APPROVAL_FLOW, [])
        if uid in approval_flow:
            return True
        return bool(entity and entity.require_comments_approval)

    def decide(
        self,
        uid: str,
        entity: RelatedEntity | None,
        requested: ApprovalStatus | None = None,
    ) -> ApprovalStatus:
        """Return the status to store.

        Without an approval flow the requested status is ignored and the
        comment is approved outright.

        Raises:
            InvalidApprovalStatusError: A non-PENDING status was requested
                while approval is required.
        """
        if not self.requires_approval(uid, entity):
            return ApprovalStatus.APPROVED

        if requested is not None and requested != ApprovalStatus.PENDING:
            raise InvalidApprovalStatusError
        return ApprovalStatus.PENDING
