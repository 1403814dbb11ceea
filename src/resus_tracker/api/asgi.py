"""ASGI entrypoint for the resus tracker API."""

from resus_tracker.api.app import create_app
from resus_tracker.containers import build_container

app = create_app(build_container())
