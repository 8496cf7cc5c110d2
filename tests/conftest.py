"""Pytest configuration shared by the CiteSearch tests."""
import os

# Keep test runs from writing log files into the working tree.
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("APP_LOG_LEVEL", "WARNING")
