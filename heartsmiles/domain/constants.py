"""Domain business rules and constants."""

from typing import Final

# Business Rules - Core domain constraints
MAX_NAME_LENGTH: Final = 100
MAX_EMAIL_LENGTH: Final = 254
MAX_PHONE_LENGTH: Final = 32
MAX_NOTES_LENGTH: Final = 2000
MAX_DESCRIPTION_LENGTH: Final = 2000
MIN_PASSWORD_LENGTH: Final = 8

STAFF_ROLES: Final = ("admin", "staff")
DEFAULT_STAFF_ROLE: Final = "staff"

# Columns of participant CSV exports and imports, in order
PARTICIPANT_CSV_COLUMNS: Final = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "program_id",
    "notes",
)
PROGRAM_CSV_COLUMNS: Final = (
    "id",
    "name",
    "description",
    "start_date",
    "end_date",
    "participant_count",
)
