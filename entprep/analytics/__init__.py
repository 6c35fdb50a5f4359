"""
Scoring & Performance Analytics

Pure computation over test definitions, attempt answers and attempt history.
Nothing here touches the network or the store, and nothing here raises on
odd data: absent data yields zero-valued or empty results.
"""

from entprep.analytics.scoring import score, score_band
from entprep.analytics.performance import (
    SubjectPerformance, WeakArea, PerformanceSummary,
    subject_performance, summarize_performance
)
from entprep.analytics.feedback import Feedback, performance_level, generate_feedback

__all__ = [
    'score',
    'score_band',
    'SubjectPerformance',
    'WeakArea',
    'PerformanceSummary',
    'subject_performance',
    'summarize_performance',
    'Feedback',
    'performance_level',
    'generate_feedback',
]
