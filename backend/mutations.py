"""Guarded boolean-flag updates on group-scoped records.

Every flag flip (resolving a forum post, closing a poll) runs the same
sequence: membership, lookup inside the group, optional role check, strict
body validation, one write, re-fetch with relations.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from errors import NotFound
from guard import require_member
from validation import require_bool, require_path_id

logger = logging.getLogger(__name__)


@dataclass
class GuardedFlagUpdate:
    # (resource_id, group_id) -> record or None
    load: Callable[[str, str], Any]
    field: str
    # (record, value) -> None, performs the single write
    apply: Callable[[Any, bool], Any]
    # (record, identity) -> response payload
    present: Callable[[Any, Any], dict]
    not_found: str
    # (record, member, identity) -> None, raises Forbidden
    authorize: Optional[Callable[[Any, Any, Any], None]] = None
    label: str = "record"

    def run(self, identity, group_id, resource_id, body):
        require_path_id(group_id, "Group ID")
        require_path_id(resource_id, f"{self.label.capitalize()} ID")
        member = require_member(identity, group_id)
        record = self.load(resource_id, group_id)
        if record is None:
            raise NotFound(self.not_found)
        if self.authorize is not None:
            self.authorize(record, member, identity)
        value = require_bool(body, self.field)
        self.apply(record, value)
        logger.info("%s %s: %s=%s by %s", self.label, resource_id, self.field, value, identity.id)
        return self.present(record, identity)
