"""Superfície HTTP (FastAPI) do motor de menus."""
