"""Version information for TinyServe."""

__version__ = "1.0.0"

# Value of the Server header on every response
SERVER_NAME = f"TinyServe/{__version__}"
