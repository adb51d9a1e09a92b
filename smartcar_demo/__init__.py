"""Smartcar OAuth demo server."""
