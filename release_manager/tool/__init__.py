"""Command line tool for release-manager.

This package is exposed for CLI documentation, not to be used as a library.
"""
