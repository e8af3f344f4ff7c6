"""Ralph - AI-assisted development workflow orchestration."""

__version__ = "0.1.0"
