"""
NeoProtect Attack Notifier
Main entry point for the application.
"""

from neoprotect_notifier.cli import run

if __name__ == "__main__":
    run()
