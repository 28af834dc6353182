"""ASGI entrypoint for the attendance engine API."""

from attendance_engine.api.app import create_app
from attendance_engine.containers import build_container

app = create_app(build_container())
