"""
External service integrations for gcall.
"""
