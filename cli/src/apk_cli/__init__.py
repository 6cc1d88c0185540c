"""apk: terminal front end for the APK Tracker dashboard"""

__version__ = "0.1.0"
