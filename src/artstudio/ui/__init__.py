"""Gradio studio for Digital Art Studio.

The studio talks to the request proxy over HTTP and keeps the gallery in the
user's browser.  Import :func:`artstudio.ui.app.create_ui` to build it.
"""
