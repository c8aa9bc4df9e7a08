"""QR session attendance package.

Organized by feature modules (users, sessions, attendance) with a thin Flask
JSON controller layer over service/repository layers, plus the background
sweeper that closes expired sessions.
"""
