"""Attendance: GPS clock-in/out with geofence and late detection."""

from app.features.attendance.models import Attendance, AttendanceStatus

__all__ = ["Attendance", "AttendanceStatus"]
