"""Narrow persistence interfaces, one per entity.

Routes and the authorization guard talk to these objects instead of building
queries themselves. Every mutating method performs a single commit.
"""
from datetime import datetime

from models import (
    db,
    User,
    StudyGroup,
    StudyGroupMember,
    ForumPost,
    ForumReply,
    Poll,
    PollOption,
    PollVote,
    CalendarEvent,
    EventRSVP,
    Message,
    Connection,
    Notification,
    ROLE_OWNER,
    ROLE_MEMBER,
    CONNECTION_PENDING,
    CONNECTION_ACCEPTED,
)


def _contains(column, term):
    return column.ilike(f"%{term}%")


class UserRepository:
    def get(self, user_id):
        return db.session.get(User, user_id)

    def update_profile(self, user, **fields):
        for key, value in fields.items():
            setattr(user, key, value)
        db.session.commit()
        return user

    def search(self, exclude_user_id, search=None, major=None, semester=None,
               min_cgpa=None, max_cgpa=None, limit=50):
        q = User.query.filter(User.id != exclude_user_id, User.is_profile_public.is_(True))
        if search:
            q = q.filter(db.or_(_contains(User.name, search), _contains(User.major, search)))
        if major:
            q = q.filter(_contains(User.major, major))
        if semester is not None:
            q = q.filter(User.semester == semester)
        if min_cgpa is not None:
            q = q.filter(User.cgpa >= min_cgpa)
        if max_cgpa is not None:
            q = q.filter(User.cgpa <= max_cgpa)
        return q.order_by(User.name.asc()).limit(limit).all()

    def discover(self, exclude_user_id, search=None, department=None, year=None,
                 shared_group_ids=None, without_groups=False, limit=50):
        """Directory listing, online users first.

        ``shared_group_ids`` keeps users belonging to any of those groups;
        ``without_groups`` keeps users with no membership at all.
        """
        q = User.query.filter(User.id != exclude_user_id)
        if search:
            q = q.filter(db.or_(
                _contains(User.name, search),
                _contains(User.email, search),
                _contains(User.student_id, search),
            ))
        if department:
            q = q.filter(User.department == department)
        if year is not None:
            q = q.filter(User.year == year)
        memberships = db.select(StudyGroupMember.user_id)
        if shared_group_ids is not None:
            q = q.filter(User.id.in_(memberships.where(StudyGroupMember.group_id.in_(shared_group_ids))))
        if without_groups:
            q = q.filter(User.id.not_in(memberships))
        return (q.order_by(User.is_online.desc(), User.last_seen.desc(), User.name.asc())
                .limit(limit)
                .all())


class GroupRepository:
    def get(self, group_id):
        return db.session.get(StudyGroup, group_id)

    def list(self, course_code=None, search=None):
        q = StudyGroup.query
        if course_code:
            q = q.filter(StudyGroup.course_code == course_code)
        if search:
            q = q.filter(db.or_(
                _contains(StudyGroup.name, search),
                _contains(StudyGroup.course_name, search),
                _contains(StudyGroup.course_code, search),
            ))
        return q.order_by(StudyGroup.created_at.desc()).all()

    def create(self, owner_id, **fields):
        group = StudyGroup(owner_id=owner_id, **fields)
        group.members.append(StudyGroupMember(user_id=owner_id, role=ROLE_OWNER))
        db.session.add(group)
        db.session.commit()
        return group

    def member_count(self, group_id):
        return StudyGroupMember.query.filter_by(group_id=group_id).count()


class MembershipRepository:
    def find(self, user_id, group_id):
        return db.session.get(StudyGroupMember, (user_id, group_id))

    def user_ids(self, group_id):
        return [m.user_id for m in StudyGroupMember.query.filter_by(group_id=group_id).all()]

    def group_ids_for_user(self, user_id):
        return [m.group_id for m in StudyGroupMember.query.filter_by(user_id=user_id).all()]

    def groups_for_user(self, user_id, limit=None):
        q = (StudyGroup.query
             .join(StudyGroupMember, StudyGroupMember.group_id == StudyGroup.id)
             .filter(StudyGroupMember.user_id == user_id)
             .order_by(StudyGroupMember.joined_at.asc()))
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def add(self, user_id, group_id, role=ROLE_MEMBER):
        member = StudyGroupMember(user_id=user_id, group_id=group_id, role=role)
        db.session.add(member)
        db.session.commit()
        return member

    def remove(self, member):
        db.session.delete(member)
        db.session.commit()


class ForumPostRepository:
    def find_in_group(self, post_id, group_id):
        return ForumPost.query.filter_by(id=post_id, group_id=group_id).first()

    def list_for_group(self, group_id, search=None, resolved=None):
        q = ForumPost.query.filter_by(group_id=group_id)
        if search:
            q = q.filter(db.or_(_contains(ForumPost.title, search), _contains(ForumPost.content, search)))
        if resolved is not None:
            q = q.filter(ForumPost.is_resolved == resolved)
        return q.order_by(ForumPost.created_at.desc()).all()

    def create(self, **fields):
        post = ForumPost(**fields)
        db.session.add(post)
        db.session.commit()
        return post

    def update_resolution(self, post, value):
        post.is_resolved = value
        db.session.commit()
        return post

    def refetch(self, post_id):
        db.session.expire_all()
        return db.session.get(ForumPost, post_id)

    def count_by_author(self, user_id):
        return ForumPost.query.filter_by(user_id=user_id).count()


class ForumReplyRepository:
    def list_for_post(self, post_id):
        return ForumReply.query.filter_by(post_id=post_id).order_by(ForumReply.created_at.asc()).all()

    def create(self, **fields):
        reply = ForumReply(**fields)
        db.session.add(reply)
        db.session.commit()
        return reply


class PollRepository:
    def find_in_group(self, poll_id, group_id):
        return Poll.query.filter_by(id=poll_id, group_id=group_id).first()

    def list_for_group(self, group_id):
        return Poll.query.filter_by(group_id=group_id).order_by(Poll.created_at.desc()).all()

    def create(self, option_texts, **fields):
        poll = Poll(**fields)
        for position, text in enumerate(option_texts):
            poll.options.append(PollOption(text=text, position=position))
        db.session.add(poll)
        db.session.commit()
        return poll

    def update_closed(self, poll, value):
        poll.is_closed = value
        db.session.commit()
        return poll

    def refetch(self, poll_id):
        db.session.expire_all()
        return db.session.get(Poll, poll_id)

    def options_in_poll(self, poll_id, option_ids):
        return PollOption.query.filter(PollOption.poll_id == poll_id, PollOption.id.in_(option_ids)).all()

    def has_voted(self, user_id, poll_id):
        return PollVote.query.filter_by(user_id=user_id, poll_id=poll_id).first() is not None

    def add_votes(self, user_id, poll_id, option_ids):
        for option_id in option_ids:
            db.session.add(PollVote(user_id=user_id, poll_id=poll_id, option_id=option_id))
        db.session.commit()


class EventRepository:
    def find_in_group(self, event_id, group_id):
        return CalendarEvent.query.filter_by(id=event_id, group_id=group_id).first()

    def list_for_group(self, group_id, start=None, end=None):
        q = CalendarEvent.query.filter_by(group_id=group_id)
        if start is not None and end is not None:
            q = q.filter(CalendarEvent.start_time >= start, CalendarEvent.start_time <= end)
        return q.order_by(CalendarEvent.start_time.asc()).all()

    def create(self, **fields):
        event = CalendarEvent(**fields)
        db.session.add(event)
        db.session.commit()
        return event

    def count_by_author(self, user_id):
        return CalendarEvent.query.filter_by(user_id=user_id).count()


class RSVPRepository:
    def find(self, user_id, event_id):
        return db.session.get(EventRSVP, (user_id, event_id))

    def upsert(self, user_id, event_id, status):
        """Return ``(rsvp, created)``."""
        rsvp = self.find(user_id, event_id)
        created = rsvp is None
        if created:
            rsvp = EventRSVP(user_id=user_id, event_id=event_id, status=status)
            db.session.add(rsvp)
        else:
            rsvp.status = status
        db.session.commit()
        return rsvp, created

    def delete(self, rsvp):
        db.session.delete(rsvp)
        db.session.commit()


class MessageRepository:
    def latest_for_group(self, group_id, limit):
        rows = (Message.query.filter_by(group_id=group_id)
                .order_by(Message.created_at.desc())
                .limit(limit)
                .all())
        rows.reverse()
        return rows

    def create(self, **fields):
        message = Message(**fields)
        db.session.add(message)
        db.session.commit()
        return message

    def count_by_author(self, user_id):
        return Message.query.filter_by(user_id=user_id).count()

    def file_visible_to(self, file_url, user_id):
        """True when ``file_url`` was posted in a group ``user_id`` belongs to."""
        return (Message.query
                .join(StudyGroupMember, StudyGroupMember.group_id == Message.group_id)
                .filter(Message.file_url == file_url, StudyGroupMember.user_id == user_id)
                .first()) is not None


class NotificationRepository:
    def list_for_user(self, user_id, unread_only=False, limit=20):
        q = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            q = q.filter(Notification.is_read.is_(False))
        return q.order_by(Notification.created_at.desc()).limit(limit).all()

    def mark_read(self, user_id, notification_ids, value):
        """Set ``is_read`` on the caller's own rows only; return how many changed."""
        if not notification_ids:
            return 0
        updated = (Notification.query
                   .filter(Notification.id.in_(notification_ids), Notification.user_id == user_id)
                   .update({Notification.is_read: value}, synchronize_session=False))
        db.session.commit()
        return updated

    def notify_users(self, user_ids, title, message, type, related_id=None, related_type=None):
        for user_id in user_ids:
            db.session.add(Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                related_id=related_id,
                related_type=related_type,
            ))
        db.session.commit()


class ConnectionRepository:
    def get(self, connection_id):
        return db.session.get(Connection, connection_id)

    def find_between(self, user_a, user_b):
        return Connection.query.filter(db.or_(
            db.and_(Connection.sender_id == user_a, Connection.receiver_id == user_b),
            db.and_(Connection.sender_id == user_b, Connection.receiver_id == user_a),
        )).first()

    def find_pending_between(self, user_a, user_b):
        return Connection.query.filter(
            Connection.status == CONNECTION_PENDING,
            db.or_(
                db.and_(Connection.sender_id == user_a, Connection.receiver_id == user_b),
                db.and_(Connection.sender_id == user_b, Connection.receiver_id == user_a),
            ),
        ).first()

    def list_accepted(self, user_id):
        return (Connection.query
                .filter(Connection.status == CONNECTION_ACCEPTED,
                        db.or_(Connection.sender_id == user_id, Connection.receiver_id == user_id))
                .order_by(Connection.created_at.desc())
                .all())

    def accepted_count(self, user_id):
        return (Connection.query
                .filter(Connection.status == CONNECTION_ACCEPTED,
                        db.or_(Connection.sender_id == user_id, Connection.receiver_id == user_id))
                .count())

    def statuses_for(self, user_id, other_ids):
        """Map each other user id to the status of its connection with ``user_id``."""
        if not other_ids:
            return {}
        rows = Connection.query.filter(db.or_(
            db.and_(Connection.sender_id == user_id, Connection.receiver_id.in_(other_ids)),
            db.and_(Connection.receiver_id == user_id, Connection.sender_id.in_(other_ids)),
        )).all()
        return {(c.receiver_id if c.sender_id == user_id else c.sender_id): c.status for c in rows}

    def create(self, sender_id, receiver_id):
        connection = Connection(sender_id=sender_id, receiver_id=receiver_id, status=CONNECTION_PENDING)
        db.session.add(connection)
        db.session.commit()
        return connection

    def reopen(self, connection, sender_id, receiver_id):
        connection.sender_id = sender_id
        connection.receiver_id = receiver_id
        connection.status = CONNECTION_PENDING
        connection.created_at = datetime.utcnow()
        db.session.commit()
        return connection

    def set_status(self, connection, status):
        connection.status = status
        db.session.commit()
        return connection

    def delete(self, connection):
        db.session.delete(connection)
        db.session.commit()


users = UserRepository()
groups = GroupRepository()
memberships = MembershipRepository()
forum_posts = ForumPostRepository()
forum_replies = ForumReplyRepository()
polls = PollRepository()
events = EventRepository()
rsvps = RSVPRepository()
messages = MessageRepository()
notifications = NotificationRepository()
connections = ConnectionRepository()
