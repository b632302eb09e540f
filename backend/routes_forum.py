import logging
from datetime import datetime, timedelta

from flask import current_app, request, jsonify

from errors import BadRequest, NotFound
from guard import require_member
from identity import require_identity
from mutations import GuardedFlagUpdate
import repositories
import serializers
from validation import json_body, optional_bool, require_text, split_list

logger = logging.getLogger(__name__)

resolve_post = GuardedFlagUpdate(
    load=repositories.forum_posts.find_in_group,
    field='isResolved',
    apply=repositories.forum_posts.update_resolution,
    present=lambda post, identity: serializers.forum_post(repositories.forum_posts.refetch(post.id)),
    not_found="Post not found",
    label="post",
)


def _load_post(group_id, post_id):
    post = repositories.forum_posts.find_in_group(post_id, group_id)
    if not post:
        raise NotFound("Post not found")
    return post


def register_forum_routes(app):

    @app.get('/api/groups/<group_id>/forum')
    def forum_list(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        resolved = request.args.get('resolved')
        posts = repositories.forum_posts.list_for_group(
            group_id,
            search=request.args.get('search'),
            resolved=None if resolved is None else resolved == 'true',
        )
        tag = request.args.get('tag')
        if tag:
            posts = [p for p in posts if tag in (p.tags or [])]
        return jsonify([serializers.forum_post(p) for p in posts])

    @app.post('/api/groups/<group_id>/forum')
    def forum_create(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        data = json_body()
        title, content = require_text(data, 'title', 'content', message="Title and content are required")
        is_anonymous = optional_bool(data, 'isAnonymous')
        is_urgent = optional_bool(data, 'isUrgent')
        urgent_until = None
        if is_urgent:
            window = current_app.config['URGENT_POST_WINDOW_MINUTES']
            urgent_until = datetime.utcnow() + timedelta(minutes=window)
        post = repositories.forum_posts.create(
            title=title,
            content=content,
            tags=split_list(data.get('tags')),
            is_anonymous=is_anonymous,
            user_id=None if is_anonymous else identity.id,
            group_id=group_id,
            is_urgent=is_urgent,
            urgent_until=urgent_until,
        )
        if is_urgent:
            recipients = [uid for uid in repositories.memberships.user_ids(group_id) if uid != identity.id]
            repositories.notifications.notify_users(
                recipients,
                title="Urgent Question",
                message=f"New urgent question in forum: {title}",
                type="FORUM_ACTIVITY",
                related_id=post.id,
                related_type="forum_post",
            )
        return jsonify(serializers.forum_post(post)), 201

    @app.patch('/api/groups/<group_id>/forum/<post_id>')
    def forum_update(group_id, post_id):
        identity = require_identity()
        return jsonify(resolve_post.run(identity, group_id, post_id, json_body()))

    @app.get('/api/groups/<group_id>/forum/<post_id>/replies')
    def forum_replies_list(group_id, post_id):
        identity = require_identity()
        require_member(identity, group_id)
        _load_post(group_id, post_id)
        replies = repositories.forum_replies.list_for_post(post_id)
        return jsonify([serializers.reply(r) for r in replies])

    @app.post('/api/groups/<group_id>/forum/<post_id>/replies')
    def forum_replies_create(group_id, post_id):
        identity = require_identity()
        require_member(identity, group_id)
        _load_post(group_id, post_id)
        data = json_body()
        content = data.get('content')
        if not isinstance(content, str) or not content.strip():
            raise BadRequest("Content is required")
        is_anonymous = optional_bool(data, 'isAnonymous')
        reply = repositories.forum_replies.create(
            content=content.strip(),
            is_anonymous=is_anonymous,
            user_id=None if is_anonymous else identity.id,
            post_id=post_id,
        )
        return jsonify(serializers.reply(reply)), 201
