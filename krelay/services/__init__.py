"""
File: krelay/services/__init__.py

Project: K Relay

Purpose:
Per-event pipeline and its collaborators (completion, media, spreadsheets).
"""
