"""
Voice-survey call-flow webhook.
"""

__version__ = "0.1.0"
