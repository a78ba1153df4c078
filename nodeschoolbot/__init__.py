"""nodeschoolbot: chat-driven organization automation for the NodeSchool GitHub org."""

__version__ = "1.0.0"
