"""
Tests for the common application: token verification, the error handler
and the event publishers.
"""
