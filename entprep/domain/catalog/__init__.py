"""
Test catalog reference data.
"""
