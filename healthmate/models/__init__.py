"""Database models."""

from healthmate.models.activity_logs import activity_logs
from healthmate.models.appointments import appointments
from healthmate.models.articles import articles
from healthmate.models.medical_records import medical_records
from healthmate.models.metadata import metadata
from healthmate.models.mood_logs import mood_logs
from healthmate.models.notifications import notifications
from healthmate.models.prescriptions import prescriptions
from healthmate.models.profiles import profiles
from healthmate.models.slots import available_slots
from healthmate.models.vitals import vitals

__all__ = [
    "activity_logs",
    "appointments",
    "articles",
    "available_slots",
    "medical_records",
    "metadata",
    "mood_logs",
    "notifications",
    "prescriptions",
    "profiles",
    "vitals",
]
