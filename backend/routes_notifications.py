from flask import current_app, request, jsonify

from errors import BadRequest
from identity import require_identity
import repositories
import serializers
from validation import json_body, parse_positive_int, require_bool


def register_notification_routes(app):

    @app.get('/api/notifications')
    def notifications_list():
        identity = require_identity()
        limit = parse_positive_int(
            request.args.get('limit'), 'limit', default=current_app.config['NOTIFICATIONS_DEFAULT_LIMIT'])
        limit = min(limit, current_app.config['NOTIFICATIONS_MAX_LIMIT'])
        rows = repositories.notifications.list_for_user(
            identity.id,
            unread_only=request.args.get('unreadOnly') == 'true',
            limit=limit,
        )
        return jsonify([serializers.notification(n) for n in rows])

    @app.patch('/api/notifications')
    def notifications_update():
        identity = require_identity()
        data = json_body()
        ids = data.get('notificationIds')
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise BadRequest("Notification IDs are required")
        mark_as_read = require_bool(data, 'markAsRead')
        updated = repositories.notifications.mark_read(identity.id, ids, mark_as_read)
        return {"message": "Notifications updated successfully", "updated": updated}
