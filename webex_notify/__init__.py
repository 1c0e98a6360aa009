"""
Command-line notifications to Webex Teams rooms.
"""

__version__ = '0.3.0'
