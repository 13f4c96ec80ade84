"""
codestream: streaming relay and code assistant backend for a browser IDE.
"""

__version__ = "0.1.0"
