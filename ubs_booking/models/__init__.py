"""Database models."""

from ubs_booking.models.appointments import appointments
from ubs_booking.models.availability import doctor_availability, doctor_date_availability
from ubs_booking.models.doctors import doctors
from ubs_booking.models.metadata import metadata
from ubs_booking.models.patients import patients
from ubs_booking.models.queue_counter import queue_counter
from ubs_booking.models.ubs import doctor_ubs, ubs

__all__ = [
    "appointments",
    "doctor_availability",
    "doctor_date_availability",
    "doctor_ubs",
    "doctors",
    "metadata",
    "patients",
    "queue_counter",
    "ubs",
]
