"""
Services

Typed facades over the data gateway, one per logical service.
"""

from entprep.services.auth_service import AuthService
from entprep.services.test_service import SaveReport, TestService
from entprep.services.analytics_service import AnalyticsService

__all__ = [
    'AuthService',
    'SaveReport',
    'TestService',
    'AnalyticsService',
]
