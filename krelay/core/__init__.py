"""
File: krelay/core/__init__.py

Purpose:
Pure message-admission logic.
- No HTTP
- No SDK clients
- No environment access
"""

from .text import normalize
from .admission import AdmissionGate, AdmissionResult, GateOptions
from .arming import SessionArmer
