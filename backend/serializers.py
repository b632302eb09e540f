"""JSON shapes returned by the API.

Keys are camelCase because the browser client consumes them directly.
"""

RSVP_DISPLAY = {
    "GOING": "ATTENDING",
    "MAYBE": "MAYBE",
    "NOT_GOING": "NOT_ATTENDING",
}


def _iso(value):
    return value.isoformat() if value else None


def user_summary(user):
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def user_card(user):
    return {
        **user_summary(user),
        "avatar": user.avatar,
        "isOnline": user.is_online,
        "lastSeen": _iso(user.last_seen),
    }


def profile(user):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "studentId": user.student_id,
        "avatar": user.avatar,
        "bio": user.bio,
        "major": user.major,
        "semester": user.semester,
        "cgpa": user.cgpa if user.show_cgpa else None,
        "enrolledCourses": list(user.enrolled_courses or []),
        "skills": list(user.skills or []),
        "interests": list(user.interests or []),
        "showCgpa": user.show_cgpa,
        "isProfilePublic": user.is_profile_public,
        "createdAt": _iso(user.created_at),
    }


def search_result(user, group_count):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "major": user.major,
        "semester": user.semester,
        "cgpa": user.cgpa if user.show_cgpa else None,
        "skills": list(user.skills or []),
        "interests": list(user.interests or []),
        "enrolledCourses": list(user.enrolled_courses or []),
        "showCgpa": user.show_cgpa,
        "_count": {"studyGroups": group_count},
    }


DISCOVERY_STATUS = {
    "accepted": "connected",
    "pending": "pending",
}


def discovery_entry(user, groups, group_count, connection_count, connection_status):
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "studentId": user.student_id,
        "bio": user.bio,
        "avatar": user.avatar,
        "department": user.department,
        "year": user.year,
        "interests": list(user.interests or []),
        "isOnline": user.is_online,
        "lastSeen": _iso(user.last_seen),
        "groups": [{"id": g.id, "name": g.name, "courseCode": g.course_code} for g in groups],
        "_count": {"groups": group_count, "connections": connection_count},
        "connectionStatus": DISCOVERY_STATUS.get(connection_status, "none"),
    }


def member(m):
    return {
        "userId": m.user_id,
        "groupId": m.group_id,
        "role": m.role,
        "joinedAt": _iso(m.joined_at),
        "user": user_summary(m.user),
    }


def group(g, include_members=True):
    data = {
        "id": g.id,
        "name": g.name,
        "description": g.description,
        "courseCode": g.course_code,
        "courseName": g.course_name,
        "maxMembers": g.max_members,
        "isPrivate": g.is_private,
        "allowAnonymous": g.allow_anonymous,
        "ownerId": g.owner_id,
        "owner": user_summary(g.owner),
        "createdAt": _iso(g.created_at),
        "_count": {"members": len(g.members)},
    }
    if include_members:
        data["members"] = [member(m) for m in g.members]
    return data


def group_listing(g, viewer_id):
    data = group(g, include_members=False)
    role = next((m.role for m in g.members if m.user_id == viewer_id), None)
    data["isMember"] = role is not None
    data["memberRole"] = role
    return data


def reply(r):
    return {
        "id": r.id,
        "content": r.content,
        "isAnonymous": r.is_anonymous,
        "postId": r.post_id,
        "user": user_summary(r.user),
        "createdAt": _iso(r.created_at),
    }


def forum_post(p):
    return {
        "id": p.id,
        "title": p.title,
        "content": p.content,
        "tags": list(p.tags or []),
        "isAnonymous": p.is_anonymous,
        "isUrgent": p.is_urgent,
        "urgentUntil": _iso(p.urgent_until),
        "isResolved": p.is_resolved,
        "groupId": p.group_id,
        "user": user_summary(p.user),
        "replies": [reply(r) for r in p.replies],
        "createdAt": _iso(p.created_at),
        "_count": {"replies": len(p.replies)},
    }


def poll(p, viewer_id):
    options = []
    for option in p.options:
        entry = {
            "id": option.id,
            "text": option.text,
            "_count": {"votes": len(option.votes)},
        }
        if not p.is_anonymous:
            entry["votes"] = [{"userId": v.user_id} for v in option.votes]
        options.append(entry)
    return {
        "id": p.id,
        "title": p.title,
        "description": p.description,
        "type": p.type,
        "isAnonymous": p.is_anonymous,
        "allowAddOptions": p.allow_add_options,
        "expiresAt": _iso(p.expires_at),
        "isClosed": p.is_closed,
        "groupId": p.group_id,
        "user": user_summary(p.user),
        "options": options,
        "votes": [{"optionId": v.option_id} for v in p.votes if v.user_id == viewer_id],
        "createdAt": _iso(p.created_at),
        "_count": {"votes": len(p.votes)},
    }


def rsvp(r):
    return {
        "userId": r.user_id,
        "eventId": r.event_id,
        "status": r.status,
        "user": user_summary(r.user),
    }


def event(e, viewer_id):
    own = next((r for r in e.rsvps if r.user_id == viewer_id), None)
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "startTime": _iso(e.start_time),
        "endTime": _iso(e.end_time),
        "location": e.location,
        "isVirtual": e.is_virtual,
        "meetingLink": e.meeting_link,
        "groupId": e.group_id,
        "user": user_summary(e.user),
        "rsvps": [rsvp(r) for r in e.rsvps],
        "userRsvp": {"status": RSVP_DISPLAY[own.status]} if own else None,
        "createdAt": _iso(e.created_at),
        "_count": {"rsvps": len(e.rsvps)},
    }


def message(m):
    return {
        "id": m.id,
        "content": m.content,
        "type": m.type,
        "fileUrl": m.file_url,
        "fileName": m.file_name,
        "fileSize": m.file_size,
        "isUrgent": m.is_urgent,
        "groupId": m.group_id,
        "user": user_summary(m.user),
        "createdAt": _iso(m.created_at),
    }


def notification(n):
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "relatedId": n.related_id,
        "relatedType": n.related_type,
        "isRead": n.is_read,
        "createdAt": _iso(n.created_at),
    }


def connection(c):
    return {
        "id": c.id,
        "senderId": c.sender_id,
        "receiverId": c.receiver_id,
        "status": c.status,
        "createdAt": _iso(c.created_at),
    }


def accepted_connection(c, viewer_id):
    other = c.receiver if c.sender_id == viewer_id else c.sender
    return {"id": c.id, "user": user_card(other), "connectedAt": _iso(c.created_at)}
