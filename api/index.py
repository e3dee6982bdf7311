"""Vercel entry point.

Vercel's Python runtime serves the ASGI ``app`` exported here; ``handler``
is the Mangum adapter for Lambda-style invocations.
"""

import sys
from pathlib import Path

# Vercel runs this file from the project root without installing it
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from heartsmiles.serverless import app, handler  # noqa: E402

__all__ = ["app", "handler"]
