"""Group membership and role checks.

A missing membership is always reported as 403, so callers outside a group
cannot tell whether the group exists.
"""
from errors import Forbidden
from models import ROLE_MEMBER
import repositories

NOT_A_MEMBER = "Not a member of this group"


def is_elevated(member):
    return member.role != ROLE_MEMBER


def require_member(identity, group_id):
    member = repositories.memberships.find(identity.id, group_id)
    if member is None:
        raise Forbidden(NOT_A_MEMBER)
    return member


def require_creator_or_admin(author_id, identity, member, message):
    """Allow the record's author, or any OWNER/ADMIN of the group."""
    if author_id == identity.id or is_elevated(member):
        return
    raise Forbidden(message)
