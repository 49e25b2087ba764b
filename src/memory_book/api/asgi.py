"""ASGI entrypoint for the memory book API."""

from memory_book.api.app import create_app
from memory_book.containers import build_container

app = create_app(build_container())
