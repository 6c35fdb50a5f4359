"""
Learner profiles and attempt history.
"""
