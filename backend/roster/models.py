from roster.domain.models import (  # noqa: F401
    AccessLevel,
    AssignmentStatus,
    AuditEvent,
    EventType,
    Ministry,
    MinistryMembership,
    Organization,
    Preacher,
    PreacherType,
    Service,
    Unavailability,
    Volunteer,
)
