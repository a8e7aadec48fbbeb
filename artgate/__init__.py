"""ArtGate package.

A prompt-to-image gateway: admission control, a shared daily spending cap,
and storage of every generated image behind stable URLs.
"""

__version__ = "1.0.0"
__description__ = "Prompt-to-image gateway"

from .main import app, create_app

__all__ = ["app", "create_app"]
