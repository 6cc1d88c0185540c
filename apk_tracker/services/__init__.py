"""
Services layer for APK Tracker.

This module contains the gateway over the backend collections and the
aggregation logic, separating them from HTTP handling in routers.
"""
