"""kafka-dash: TUI dashboard for inspecting and administering Kafka clusters."""

VERSION = "0.1.0"

__version__ = VERSION
__all__ = ["__version__", "VERSION"]
