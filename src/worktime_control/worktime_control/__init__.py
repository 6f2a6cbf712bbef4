"""Work-time control package.

Organized by feature modules (worktime, sessions, leave_requests, ...) with a thin
Flask controller layer over service/repository layers.
"""
