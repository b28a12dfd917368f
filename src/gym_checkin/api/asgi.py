"""ASGI entrypoint for the gym check-in API."""

from gym_checkin.api.app import create_app
from gym_checkin.containers import build_container

app = create_app(build_container())
