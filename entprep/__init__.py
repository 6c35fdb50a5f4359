"""
EntPrep Exam-Preparation Core

This package is the assessment-delivery and analytics core of an
exam-preparation application:

1. A dual-source data gateway routing auth, tests and analytics operations
   to a remote service or a local key-value store, per service
2. A timed exam session state machine with auto-finish on timeout
3. A scoring and performance analytics engine with rule-based feedback
"""

__version__ = "0.1.0"
