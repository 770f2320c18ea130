"""User administration panel: session-gated API proxy and optimistic sync client"""

__version__ = "1.0.0"
