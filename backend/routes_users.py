import logging

from flask import current_app, request, jsonify
from sqlalchemy.exc import IntegrityError

from errors import BadRequest, Forbidden, NotFound
from identity import require_identity
from models import db, CONNECTION_ACCEPTED, CONNECTION_PENDING, CONNECTION_REJECTED
import repositories
import serializers
from validation import (
    json_body,
    optional_bool,
    parse_optional_float,
    parse_optional_int,
    require_path_id,
    split_list,
)

logger = logging.getLogger(__name__)

CONNECTION_ACTIONS = {"accept": CONNECTION_ACCEPTED, "reject": CONNECTION_REJECTED}
DISCOVERY_GROUPS_SHOWN = 5


def register_user_routes(app):

    # Profile
    @app.get('/api/profile')
    def profile_get():
        identity = require_identity()
        user = repositories.users.get(identity.id)
        if not user:
            raise NotFound("User not found")
        return jsonify(serializers.profile(user))

    @app.put('/api/profile')
    def profile_update():
        identity = require_identity()
        user = repositories.users.get(identity.id)
        if not user:
            raise NotFound("User not found")
        data = json_body()
        user = repositories.users.update_profile(
            user,
            major=data.get('major') or None,
            semester=parse_optional_int(data.get('semester'), 'semester'),
            cgpa=parse_optional_float(data.get('cgpa'), 'CGPA'),
            enrolled_courses=split_list(data.get('enrolledCourses')),
            skills=split_list(data.get('skills')),
            interests=split_list(data.get('interests')),
            show_cgpa=optional_bool(data, 'showCgpa', False),
            is_profile_public=optional_bool(data, 'isProfilePublic', True),
        )
        return {"message": "Profile updated successfully", "user": serializers.profile(user)}

    @app.get('/api/users/search')
    def users_search():
        identity = require_identity()
        args = request.args
        limit = current_app.config['SEARCH_RESULT_LIMIT']
        skill = args.get('skills')
        interest = args.get('interests')
        course = args.get('course')
        list_filters = bool(skill or interest or course)
        rows = repositories.users.search(
            identity.id,
            search=args.get('search'),
            major=args.get('major'),
            semester=parse_optional_int(args.get('semester'), 'semester'),
            min_cgpa=parse_optional_float(args.get('minCgpa'), 'minCgpa'),
            max_cgpa=parse_optional_float(args.get('maxCgpa'), 'maxCgpa'),
            limit=None if list_filters else limit,
        )
        if skill:
            rows = [u for u in rows if skill in (u.skills or [])]
        if interest:
            rows = [u for u in rows if interest in (u.interests or [])]
        if course:
            rows = [u for u in rows if course in (u.enrolled_courses or [])]
        return jsonify([
            serializers.search_result(u, len(repositories.memberships.group_ids_for_user(u.id)))
            for u in rows[:limit]
        ])

    @app.get('/api/users/discovery')
    def users_discovery():
        identity = require_identity()
        args = request.args
        group_filter = args.get('group')
        shared_group_ids = None
        if group_filter == 'shared':
            shared_group_ids = repositories.memberships.group_ids_for_user(identity.id)
        rows = repositories.users.discover(
            identity.id,
            search=args.get('search'),
            department=args.get('department'),
            year=parse_optional_int(args.get('year'), 'year'),
            shared_group_ids=shared_group_ids,
            without_groups=group_filter == 'none',
            limit=current_app.config['SEARCH_RESULT_LIMIT'],
        )
        statuses = repositories.connections.statuses_for(identity.id, [u.id for u in rows])
        return jsonify([
            serializers.discovery_entry(
                u,
                repositories.memberships.groups_for_user(u.id, limit=DISCOVERY_GROUPS_SHOWN),
                len(repositories.memberships.group_ids_for_user(u.id)),
                repositories.connections.accepted_count(u.id),
                statuses.get(u.id),
            )
            for u in rows
        ])

    # Connections
    @app.get('/api/users/connections')
    def connections_list():
        identity = require_identity()
        rows = repositories.connections.list_accepted(identity.id)
        return jsonify([serializers.accepted_connection(c, identity.id) for c in rows])

    @app.post('/api/users/connections')
    def connections_request():
        identity = require_identity()
        target_id = json_body().get('targetUserId')
        if not target_id:
            raise BadRequest("Target user ID is required")
        if target_id == identity.id:
            raise BadRequest("Cannot connect with yourself")
        if not repositories.users.get(target_id):
            raise NotFound("User not found")
        existing = repositories.connections.find_between(identity.id, target_id)
        try:
            if existing is None:
                connection = repositories.connections.create(identity.id, target_id)
            elif existing.status == CONNECTION_ACCEPTED:
                raise BadRequest("Users are already connected")
            elif existing.status == CONNECTION_PENDING:
                raise BadRequest("Connection request already exists")
            else:
                connection = repositories.connections.reopen(existing, identity.id, target_id)
        except IntegrityError:
            db.session.rollback()
            raise BadRequest("Connection request already exists")
        logger.info("connection request %s -> %s", identity.id, target_id)
        return {"message": "Connection request sent successfully", "connection": serializers.connection(connection)}

    @app.put('/api/users/connections')
    def connections_respond():
        identity = require_identity()
        data = json_body()
        connection_id = data.get('connectionId')
        action = data.get('action')
        if not connection_id or not action:
            raise BadRequest("Connection ID and action are required")
        if action not in CONNECTION_ACTIONS:
            raise BadRequest("Invalid action. Must be 'accept' or 'reject'")
        connection = repositories.connections.get(connection_id)
        if not connection:
            raise NotFound("Connection not found")
        if connection.receiver_id != identity.id:
            raise Forbidden("Unauthorized to perform this action")
        if connection.status != CONNECTION_PENDING:
            raise BadRequest("Connection request is no longer pending")
        connection = repositories.connections.set_status(connection, CONNECTION_ACTIONS[action])
        return {
            "message": f"Connection request {action}ed successfully",
            "connection": serializers.connection(connection),
        }

    @app.delete('/api/users/connections/<user_id>')
    def connections_cancel(user_id):
        identity = require_identity()
        require_path_id(user_id, "Target user ID")
        connection = repositories.connections.find_pending_between(identity.id, user_id)
        if not connection:
            raise NotFound("Connection request not found")
        repositories.connections.delete(connection)
        logger.info("connection request between %s and %s canceled", identity.id, user_id)
        return {"message": "Connection request canceled successfully"}

    # Activity counts
    @app.get('/api/users/events/count')
    def count_events():
        identity = require_identity()
        return {"count": repositories.events.count_by_author(identity.id)}

    @app.get('/api/users/forum-posts/count')
    def count_forum_posts():
        identity = require_identity()
        return {"count": repositories.forum_posts.count_by_author(identity.id)}

    @app.get('/api/users/messages/count')
    def count_messages():
        identity = require_identity()
        return {"count": repositories.messages.count_by_author(identity.id)}
