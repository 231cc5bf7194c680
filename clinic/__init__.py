"""
Clinic Scheduling API

FastAPI backend for a clinic: departments, doctors with declared
availability, and appointment booking that refuses double bookings
either per date and hourly slot or per weekday capacity.
"""

__version__ = "1.0.0"
