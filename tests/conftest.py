"""
Test configuration: point the app at an in-memory SQLite database and a
known JWT secret before any application module is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")
