from flask import request, jsonify

from errors import BadRequest, NotFound
from guard import require_member
from identity import require_identity
from models import RSVP_STATUSES
import repositories
import serializers
from validation import json_body, optional_bool, parse_datetime


def _load_event(group_id, event_id):
    event = repositories.events.find_in_group(event_id, group_id)
    if not event:
        raise NotFound("Event not found")
    return event


def register_calendar_routes(app):

    @app.get('/api/groups/<group_id>/calendar')
    def calendar_list(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        start_raw = request.args.get('startDate')
        end_raw = request.args.get('endDate')
        start = end = None
        if start_raw and end_raw:
            start = parse_datetime(start_raw, 'startDate')
            end = parse_datetime(end_raw, 'endDate')
        events = repositories.events.list_for_group(group_id, start, end)
        return jsonify([serializers.event(e, identity.id) for e in events])

    @app.post('/api/groups/<group_id>/calendar')
    def calendar_create(group_id):
        identity = require_identity()
        require_member(identity, group_id)
        data = json_body()
        title = data.get('title')
        if not isinstance(title, str) or not title.strip() or not data.get('startTime') or not data.get('endTime'):
            raise BadRequest("Title, start time, and end time are required")
        start = parse_datetime(data.get('startTime'), 'startTime')
        end = parse_datetime(data.get('endTime'), 'endTime')
        if end < start:
            raise BadRequest("End time must not be before start time")
        event = repositories.events.create(
            title=title.strip(),
            description=data.get('description'),
            start_time=start,
            end_time=end,
            location=data.get('location'),
            is_virtual=optional_bool(data, 'isVirtual'),
            meeting_link=data.get('meetingLink'),
            user_id=identity.id,
            group_id=group_id,
        )
        repositories.notifications.notify_users(
            repositories.memberships.user_ids(group_id),
            title="New Event Created",
            message=f"New event: {event.title}",
            type="EVENT_CREATED",
            related_id=event.id,
            related_type="calendar_event",
        )
        return jsonify(serializers.event(event, identity.id)), 201

    @app.post('/api/groups/<group_id>/calendar/<event_id>/rsvp')
    def calendar_rsvp(group_id, event_id):
        identity = require_identity()
        require_member(identity, group_id)
        _load_event(group_id, event_id)
        status = json_body().get('status')
        if status not in RSVP_STATUSES:
            raise BadRequest("Valid status is required (GOING, MAYBE, NOT_GOING)")
        rsvp, created = repositories.rsvps.upsert(identity.id, event_id, status)
        return jsonify(serializers.rsvp(rsvp)), 201 if created else 200

    @app.delete('/api/groups/<group_id>/calendar/<event_id>/rsvp')
    def calendar_rsvp_delete(group_id, event_id):
        identity = require_identity()
        require_member(identity, group_id)
        _load_event(group_id, event_id)
        rsvp = repositories.rsvps.find(identity.id, event_id)
        if not rsvp:
            raise NotFound("RSVP not found")
        repositories.rsvps.delete(rsvp)
        return {"message": "RSVP removed"}
