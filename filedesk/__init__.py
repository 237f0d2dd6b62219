"""
filedesk: file format conversion and image processing service.
"""

__version__ = "1.0.0"
