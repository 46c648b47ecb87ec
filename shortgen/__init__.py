"""
shortgen - short vertical video compositor.

Plans and renders narrated card videos over a background clip with an
optional outro.
"""

__version__ = "0.1.0"
