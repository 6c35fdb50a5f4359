"""
Analytics Service

Feedback for the current user, from the remote helper or computed locally.
"""

from entprep.analytics.feedback import Feedback
from entprep.common.exceptions import ValidationError
from entprep.common.logger import app_logger
from entprep.gateway.gateway import DataGateway

logger = app_logger.getChild("services.analytics")


class AnalyticsService:

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    async def feedback(self) -> Feedback:
        payload = await self.gateway.fetch_entity("analytics", "feedback")
        try:
            return Feedback.from_dict(payload)
        except ValidationError as e:
            logger.warning(f"Discarding malformed feedback: {e.message}")
            return Feedback.insufficient_data()
