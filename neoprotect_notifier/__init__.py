"""
NeoProtect Attack Notifier
Polls the NeoProtect API for DDoS attacks and fans out notifications.
"""

__version__ = "0.1.0"
