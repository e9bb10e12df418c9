import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo")
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "college_attendance")

EXPORT_LIMITS = {
    "max_students": int(os.getenv("EXPORT_MAX_STUDENTS", "100")),
    "max_subjects": int(os.getenv("EXPORT_MAX_SUBJECTS", "15")),
    "max_days": int(os.getenv("EXPORT_MAX_DAYS", "90")),
}

APPROVAL_FLOW = [s.strip() for s in os.getenv("APPROVAL_FLOW", "Teacher,HOD").split(",") if s.strip()]

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False
