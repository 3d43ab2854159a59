"""clientgen - typed API client generation from example responses."""

__version__ = "0.1.0"
