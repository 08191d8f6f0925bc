"""Concert group formation engine.

Groups users who follow the same artist, live near one of the artist's
upcoming concerts, and are connected through accepted friendships.
"""

__version__ = "0.1.0"
