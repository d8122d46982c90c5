"""
Sub functionalities of the tagprune CLI
"""

from .config import config_app
