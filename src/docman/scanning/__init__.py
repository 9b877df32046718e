"""Scanning of directories on disk into document trees."""

from .scanner import FileScanner, creation_date

__all__ = ["FileScanner", "creation_date"]
