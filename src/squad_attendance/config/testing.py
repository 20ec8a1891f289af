SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "squad_attendance_test",
}

STORE_BACKEND = "memory"
IMAGE_BACKEND = "memory"

TOKEN_MAX_AGE_SECONDS = 3600
MAX_CONTENT_LENGTH = 20 * 1024 * 1024

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

LOG_LEVEL = "WARNING"
LOG_FILE = None
