"""
Assessments

Timed exam sessions built on the test catalog.
"""
