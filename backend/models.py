import uuid
from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ROLE_OWNER = "OWNER"
ROLE_ADMIN = "ADMIN"
ROLE_MEMBER = "MEMBER"

POLL_TYPES = ("SINGLE_CHOICE", "MULTIPLE_CHOICE", "YES_NO")
RSVP_STATUSES = ("GOING", "MAYBE", "NOT_GOING")
MESSAGE_TYPES = ("TEXT", "FILE", "IMAGE", "SYSTEM")

CONNECTION_PENDING = "pending"
CONNECTION_ACCEPTED = "accepted"
CONNECTION_REJECTED = "rejected"


def new_id():
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    uid = db.Column(db.String(128), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(120))
    student_id = db.Column(db.String(20), unique=True)
    avatar = db.Column(db.String(255))
    bio = db.Column(db.Text)
    department = db.Column(db.String(120))
    year = db.Column(db.Integer)
    major = db.Column(db.String(120))
    semester = db.Column(db.Integer)
    cgpa = db.Column(db.Float)
    enrolled_courses = db.Column(db.JSON, nullable=False, default=list)
    skills = db.Column(db.JSON, nullable=False, default=list)
    interests = db.Column(db.JSON, nullable=False, default=list)
    show_cgpa = db.Column(db.Boolean, nullable=False, default=False)
    is_profile_public = db.Column(db.Boolean, nullable=False, default=True)
    is_online = db.Column(db.Boolean, nullable=False, default=False)
    last_seen = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class StudyGroup(db.Model):
    __tablename__ = "study_groups"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    course_code = db.Column(db.String(20), nullable=False)
    course_name = db.Column(db.String(200), nullable=False)
    max_members = db.Column(db.Integer, nullable=False, default=10)
    is_private = db.Column(db.Boolean, nullable=False, default=False)
    allow_anonymous = db.Column(db.Boolean, nullable=False, default=True)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    owner = db.relationship("User")
    members = db.relationship("StudyGroupMember", back_populates="group", cascade="all, delete-orphan")


class StudyGroupMember(db.Model):
    __tablename__ = "study_group_members"
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), primary_key=True)
    group_id = db.Column(db.String(36), db.ForeignKey("study_groups.id"), primary_key=True)
    role = db.Column(db.String(10), nullable=False, default=ROLE_MEMBER)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    group = db.relationship("StudyGroup", back_populates="members")


class ForumPost(db.Model):
    __tablename__ = "forum_posts"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    tags = db.Column(db.JSON, nullable=False, default=list)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    is_urgent = db.Column(db.Boolean, nullable=False, default=False)
    urgent_until = db.Column(db.DateTime)
    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"))
    group_id = db.Column(db.String(36), db.ForeignKey("study_groups.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    replies = db.relationship(
        "ForumReply",
        back_populates="post",
        order_by="ForumReply.created_at.asc()",
        cascade="all, delete-orphan",
    )


class ForumReply(db.Model):
    __tablename__ = "forum_replies"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    content = db.Column(db.Text, nullable=False)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"))
    post_id = db.Column(db.String(36), db.ForeignKey("forum_posts.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    post = db.relationship("ForumPost", back_populates="replies")


class Poll(db.Model):
    __tablename__ = "polls"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False, default="SINGLE_CHOICE")
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    allow_add_options = db.Column(db.Boolean, nullable=False, default=True)
    expires_at = db.Column(db.DateTime)
    is_closed = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey("study_groups.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    options = db.relationship(
        "PollOption",
        back_populates="poll",
        order_by="PollOption.position.asc()",
        cascade="all, delete-orphan",
    )
    votes = db.relationship("PollVote", back_populates="poll", cascade="all, delete-orphan")


class PollOption(db.Model):
    __tablename__ = "poll_options"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    text = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    poll_id = db.Column(db.String(36), db.ForeignKey("polls.id"), nullable=False)

    poll = db.relationship("Poll", back_populates="options")
    votes = db.relationship("PollVote", back_populates="option")


class PollVote(db.Model):
    __tablename__ = "poll_votes"
    __table_args__ = (db.UniqueConstraint("user_id", "option_id", name="uq_poll_vote_user_option"),)
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    poll_id = db.Column(db.String(36), db.ForeignKey("polls.id"), nullable=False)
    option_id = db.Column(db.String(36), db.ForeignKey("poll_options.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    poll = db.relationship("Poll", back_populates="votes")
    option = db.relationship("PollOption", back_populates="votes")


class CalendarEvent(db.Model):
    __tablename__ = "calendar_events"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(255))
    is_virtual = db.Column(db.Boolean, nullable=False, default=False)
    meeting_link = db.Column(db.String(255))
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey("study_groups.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    rsvps = db.relationship("EventRSVP", back_populates="event", cascade="all, delete-orphan")


class EventRSVP(db.Model):
    __tablename__ = "event_rsvps"
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), primary_key=True)
    event_id = db.Column(db.String(36), db.ForeignKey("calendar_events.id"), primary_key=True)
    status = db.Column(db.String(10), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")
    event = db.relationship("CalendarEvent", back_populates="rsvps")


class Message(db.Model):
    __tablename__ = "messages"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    content = db.Column(db.Text)
    type = db.Column(db.String(10), nullable=False, default="TEXT")
    file_url = db.Column(db.String(255))
    file_name = db.Column(db.String(255))
    file_size = db.Column(db.Integer)
    is_urgent = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    group_id = db.Column(db.String(36), db.ForeignKey("study_groups.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User")


class Connection(db.Model):
    __tablename__ = "connections"
    __table_args__ = (db.UniqueConstraint("sender_id", "receiver_id", name="uq_connection_pair"),)
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sender_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    receiver_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=CONNECTION_PENDING)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    sender = db.relationship("User", foreign_keys=[sender_id])
    receiver = db.relationship("User", foreign_keys=[receiver_id])


class Notification(db.Model):
    __tablename__ = "notifications"
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(30), nullable=False)
    related_id = db.Column(db.String(36))
    related_type = db.Column(db.String(30))
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
