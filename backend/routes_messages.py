from flask import current_app, request, jsonify

from errors import BadRequest
from guard import require_member
from identity import require_identity
from models import MESSAGE_TYPES
import repositories
import serializers
from uploads import store_upload
from validation import json_body, optional_bool


def register_message_routes(app):

    @app.get('/api/groups/<group_id>/messages')
    def messages_list(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        rows = repositories.messages.latest_for_group(group_id, current_app.config['MESSAGES_PAGE_SIZE'])
        return jsonify([serializers.message(m) for m in rows])

    @app.post('/api/groups/<group_id>/messages')
    def messages_create(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        data = json_body()
        message_type = data.get('type') or 'TEXT'
        if message_type not in MESSAGE_TYPES:
            raise BadRequest("Invalid message type")
        content = data.get('content')
        if not content and message_type != 'SYSTEM':
            raise BadRequest("Message content is required")
        if content is not None and not isinstance(content, str):
            raise BadRequest("content must be a string")
        message = repositories.messages.create(
            content=content,
            type=message_type,
            is_urgent=optional_bool(data, 'isUrgent'),
            user_id=identity.id,
            group_id=group_id,
        )
        return jsonify(serializers.message(message)), 201

    @app.post('/api/groups/<group_id>/messages/files')
    def messages_file(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        stored = store_upload(request.files.get('file'), current_app.config)
        message = repositories.messages.create(
            content=request.form.get('content') or stored.original_name,
            type='IMAGE' if stored.is_image else 'FILE',
            file_url=stored.url,
            file_name=stored.original_name,
            file_size=stored.size,
            is_urgent=request.form.get('isUrgent') == 'true',
            user_id=identity.id,
            group_id=group_id,
        )
        return jsonify(serializers.message(message)), 201
