from portal.extensions import db
from portal.models import Permission, Role
from portal.models.enums import ADMIN_ROLE

PERMISSIONS = {
    "events.view": "See unpublished events",
    "events.create": "Create events",
    "events.update": "Edit events and highlight them",
    "events.publish": "Publish or unpublish events",
    "attendance.view": "See an event's attendance list",
    "attendance.manage": "Add attendees and change participant types",
    "attendance.checkin": "Check attendees in at the door",
    "users.view": "List users",
    "roles.assign": "Assign roles to users",
    "companies.update": "Activate or deactivate member companies",
    "logs.view": "Read the audit log",
}

# admin holds every permission implicitly; the rows are seeded so listings show them
ROLES = {
    ADMIN_ROLE: ("Full access", list(PERMISSIONS)),
    "event_manager": (
        "Runs events and their attendance lists",
        [
            "events.view",
            "events.create",
            "events.update",
            "events.publish",
            "attendance.view",
            "attendance.manage",
            "attendance.checkin",
        ],
    ),
    "reception": (
        "Checks attendees in",
        ["events.view", "attendance.view", "attendance.checkin"],
    ),
    "marketing": ("Promotes events", ["events.view", "events.update", "attendance.view"]),
    "viewer": ("Read-only staff access", ["events.view", "attendance.view"]),
}


def seed_roles():
    """Create missing permissions and roles; existing rows keep their data."""
    permissions = {}
    for name, description in PERMISSIONS.items():
        permission = Permission.query.filter_by(name=name).first()
        if not permission:
            permission = Permission(name=name, description=description)
            db.session.add(permission)
        permissions[name] = permission

    created = []
    for name, (description, granted) in ROLES.items():
        role = Role.query.filter_by(name=name).first()
        if not role:
            role = Role(name=name, description=description)
            db.session.add(role)
            created.append(name)
        for permission_name in granted:
            if permissions[permission_name] not in role.permissions:
                role.permissions.append(permissions[permission_name])

    db.session.commit()
    return created
