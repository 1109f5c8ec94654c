"""
Test environment. Must run before any app module is imported: settings are
read once at import time.
"""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
# Minimum bcrypt cost keeps hashing fast in tests.
os.environ["BCRYPT_ROUNDS"] = "4"
