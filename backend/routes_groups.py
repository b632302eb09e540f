import logging

from flask import request, jsonify

from errors import BadRequest, Forbidden, NotFound
from identity import require_identity
from models import ROLE_OWNER
import repositories
import serializers
from validation import json_body, optional_bool, parse_positive_int, require_text

logger = logging.getLogger(__name__)


def register_group_routes(app):

    @app.get('/api/groups')
    def groups_list():
        identity = require_identity()
        rows = repositories.groups.list(
            course_code=request.args.get('courseCode'),
            search=request.args.get('search'),
        )
        return jsonify([serializers.group_listing(g, identity.id) for g in rows])

    @app.post('/api/groups')
    def groups_create():
        identity = require_identity()
        data = json_body()
        name, course_code, course_name = require_text(
            data, 'name', 'courseCode', 'courseName',
            message="Name, course code, and course name are required",
        )
        max_members = data.get('maxMembers')
        if max_members is not None:
            max_members = parse_positive_int(max_members, 'maxMembers')
        group = repositories.groups.create(
            identity.id,
            name=name,
            description=data.get('description'),
            course_code=course_code,
            course_name=course_name,
            max_members=max_members or 10,
            is_private=optional_bool(data, 'isPrivate', False),
            allow_anonymous=optional_bool(data, 'allowAnonymous', True),
        )
        logger.info("group %s created by %s", group.id, identity.id)
        return jsonify(serializers.group(group)), 201

    @app.get('/api/groups/<group_id>')
    def groups_get(group_id):
        identity = require_identity()
        group = repositories.groups.get(group_id)
        if not group:
            raise NotFound("Group not found")
        is_member = any(m.user_id == identity.id for m in group.members)
        if group.is_private and not is_member:
            raise Forbidden("Forbidden")
        return jsonify(serializers.group(group))

    @app.post('/api/groups/<group_id>/join')
    def groups_join(group_id):
        identity = require_identity()
        group = repositories.groups.get(group_id)
        if not group:
            raise NotFound("Group not found")
        if repositories.memberships.find(identity.id, group_id):
            raise BadRequest("Already a member of this group")
        if repositories.groups.member_count(group_id) >= group.max_members:
            raise BadRequest("Group is at maximum capacity")
        member = repositories.memberships.add(identity.id, group_id)
        logger.info("user %s joined group %s", identity.id, group_id)
        return jsonify(serializers.member(member)), 201

    @app.delete('/api/groups/<group_id>/join')
    def groups_leave(group_id):
        identity = require_identity()
        member = repositories.memberships.find(identity.id, group_id)
        if not member:
            raise BadRequest("Not a member of this group")
        if member.role == ROLE_OWNER:
            raise BadRequest("Group owners cannot leave their own group")
        repositories.memberships.remove(member)
        logger.info("user %s left group %s", identity.id, group_id)
        return {"message": "Successfully left the group"}
