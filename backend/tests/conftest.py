# ruff: noqa: INP001
"""Pytest configuration shared across backend tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Import-time settings must not pick up real vendor credentials from the shell.
for _name in (
    "NOTION_API_KEY",
    "NOTION_DATABASE_ID",
    "FIREBASE_PROJECT_ID",
    "FIREBASE_CLIENT_EMAIL",
    "FIREBASE_PRIVATE_KEY",
    "GEMINI_API_KEY",
    "CORS_ORIGINS",
):
    os.environ[_name] = ""
os.environ["LOG_LEVEL"] = "WARNING"
