"""Data access layer: document stores, auxiliary map/factor data and local files."""
