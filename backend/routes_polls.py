import logging
from datetime import datetime

from flask import jsonify
from sqlalchemy.exc import IntegrityError

from errors import BadRequest, NotFound
from guard import require_creator_or_admin, require_member
from identity import require_identity
from models import db, POLL_TYPES
from mutations import GuardedFlagUpdate
import repositories
import serializers
from validation import json_body, optional_bool, parse_datetime

logger = logging.getLogger(__name__)

# one vote per caller per poll
SINGLE_VOTE_TYPES = ("SINGLE_CHOICE", "YES_NO")

close_poll = GuardedFlagUpdate(
    load=repositories.polls.find_in_group,
    field='isClosed',
    apply=repositories.polls.update_closed,
    present=lambda poll, identity: serializers.poll(repositories.polls.refetch(poll.id), identity.id),
    not_found="Poll not found",
    authorize=lambda poll, member, identity: require_creator_or_admin(
        poll.user_id, identity, member, "Only poll creator or group admin can modify poll"),
    label="poll",
)


def register_poll_routes(app):

    @app.get('/api/groups/<group_id>/polls')
    def polls_list(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        polls = repositories.polls.list_for_group(group_id)
        return jsonify([serializers.poll(p, identity.id) for p in polls])

    @app.post('/api/groups/<group_id>/polls')
    def polls_create(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        data = json_body()
        title = data.get('title')
        options = data.get('options')
        if (not isinstance(title, str) or not title.strip()
                or not isinstance(options, list) or len(options) < 2):
            raise BadRequest("Title and at least 2 options are required")
        option_texts = [str(o).strip() for o in options]
        if any(not text for text in option_texts):
            raise BadRequest("Poll options cannot be empty")
        poll_type = data.get('type')
        if poll_type not in POLL_TYPES:
            raise BadRequest("Invalid poll type")
        expires_at = data.get('expiresAt')
        poll = repositories.polls.create(
            option_texts,
            title=title.strip(),
            description=data.get('description'),
            type=poll_type,
            is_anonymous=optional_bool(data, 'isAnonymous'),
            allow_add_options=optional_bool(data, 'allowAddOptions', True),
            expires_at=parse_datetime(expires_at, 'expiresAt') if expires_at else None,
            user_id=identity.id,
            group_id=group_id,
        )
        repositories.notifications.notify_users(
            repositories.memberships.user_ids(group_id),
            title="New Poll Created",
            message=f"New poll: {poll.title}",
            type="POLL_CREATED",
            related_id=poll.id,
            related_type="poll",
        )
        logger.info("poll %s created in group %s", poll.id, group_id)
        return jsonify(serializers.poll(poll, identity.id)), 201

    @app.patch('/api/groups/<group_id>/polls/<poll_id>')
    def polls_update(group_id, poll_id):
        identity = require_identity()
        return jsonify(close_poll.run(identity, group_id, poll_id, json_body()))

    @app.post('/api/groups/<group_id>/polls/<poll_id>/vote')
    def polls_vote(group_id, poll_id):
        identity = require_identity()
        require_member(identity, group_id)
        poll = repositories.polls.find_in_group(poll_id, group_id)
        if not poll:
            raise NotFound("Poll not found")
        if poll.is_closed:
            raise BadRequest("Poll is closed")
        if poll.expires_at and datetime.utcnow() > poll.expires_at:
            raise BadRequest("Poll has expired")

        option_ids = json_body().get('optionIds')
        if not isinstance(option_ids, list) or not option_ids:
            raise BadRequest("At least one option must be selected")
        option_ids = list(dict.fromkeys(str(o) for o in option_ids))
        if len(repositories.polls.options_in_poll(poll_id, option_ids)) != len(option_ids):
            raise BadRequest("Invalid option(s) selected")

        if poll.type in SINGLE_VOTE_TYPES:
            if len(option_ids) != 1:
                raise BadRequest("This poll accepts a single option")
            if repositories.polls.has_voted(identity.id, poll_id):
                raise BadRequest("You have already voted on this poll")

        try:
            repositories.polls.add_votes(identity.id, poll_id, option_ids)
        except IntegrityError:
            db.session.rollback()
            raise BadRequest("You have already voted for this option")
        return {"message": "Vote recorded successfully"}, 201
