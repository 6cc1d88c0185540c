"""APK Tracker: register mobile apps, hand out tracking keys, show install/open counts."""

__version__ = "0.1.0"
