from .link import LinkSchema, LinkResponse, RedirectResult, RequestMetadata
from .payout import PayoutSchema, PayoutResult, PayoutStatsResponse
from .analytics import InsightsResponse, LinkAnalyticsResponse
