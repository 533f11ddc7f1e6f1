"""dockering: Docker container and deployment-script inventory over SSH."""

__version__ = "0.1.0"
