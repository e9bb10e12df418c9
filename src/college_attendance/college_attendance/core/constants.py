"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_ROOT = "attendance"
LEAVE_ROOT = "leave"

USERS_COLLECTION = "users"
TEACHERS_COLLECTION = "teachers"
LEAVE_REQUESTS_COLLECTION = "leaveRequests"
ATTENDANCE_COLLECTION = "attendance"
NOTIFICATIONS_COLLECTION = "notifications"

DEFAULT_MAX_STUDENTS = 100
DEFAULT_MAX_SUBJECTS = 15
DEFAULT_MAX_DAYS = 90

DEFAULT_APPROVAL_FLOW = ("Teacher", "HOD")
DEFAULT_LEAVE_SUBJECT = "General"

NOTIFICATION_LIST_LIMIT = 50
