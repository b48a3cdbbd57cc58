"""
K Relay

LINE / WhatsApp webhook relay to an LLM completion endpoint.
"""

__version__ = "0.1.0"
