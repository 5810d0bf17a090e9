"""
Application-wide constants
"""
SERVICE_NAME = "timeclock-backend"
DEFAULT_VERSION = "1.0.0"
