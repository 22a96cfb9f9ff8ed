"""ASGI entrypoint for the gallery workflow API."""

from gallery_workflow.api.app import create_app
from gallery_workflow.containers import build_container

app = create_app(build_container())
