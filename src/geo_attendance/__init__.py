"""Geo Attendance package.

This package is organized by feature modules (geofence, location, attendance, ...)
with a thin Flask controller layer and service/store/repository layers underneath.
"""
