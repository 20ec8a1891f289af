"""Squad Attendance package.

Organized by feature modules (players, attendance, analytics, users) with a
thin Flask controller layer over service/repository layers.
"""
