SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"
MONGODB_URI = "mongodb://localhost:27017"
MONGODB_DATABASE = "college_attendance_test"

EXPORT_LIMITS = {"max_students": 100, "max_subjects": 15, "max_days": 90}

APPROVAL_FLOW = ["Teacher", "HOD"]

REQUEST_TIMEOUT_SECONDS = 5.0

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True
