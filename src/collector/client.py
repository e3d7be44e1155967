"""
DataForSEO API Client

Async HTTP client with:
- Connection pooling
- Automatic retry with exponential backoff
- API-level and task-level status checks (five-digit DataForSEO codes)
- Mapping of Labs and Backlinks payloads into the shared metric types
"""

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from src.integrations.base import ProviderAPIError, ProviderErrorCode
from src.integrations.http import BaseAPIClient, RetryConfig
from src.models import BacklinkMetrics, KeywordMetrics
from src.scoring.helpers import round_half_up

logger = logging.getLogger(__name__)


# Midpoint weight per organic position bucket. This is a heuristic weighted
# midpoint, not a true mean of the underlying positions.
POSITION_BUCKET_WEIGHTS = (
    ("pos_1", 1),
    ("pos_2_3", 2.5),
    ("pos_4_10", 7),
    ("pos_11_20", 15),
    ("pos_21_30", 25),
    ("pos_31_40", 35),
    ("pos_41_50", 45),
    ("pos_51_60", 55),
    ("pos_61_70", 65),
    ("pos_71_80", 75),
    ("pos_81_90", 85),
    ("pos_91_100", 95),
)

_TASK_OK = (20000, 20100)


def safe_get_result(response: Dict, get_items: bool = True) -> Any:
    """
    Safely extract result data from DataForSEO API response.

    Handles cases where result is None, empty, or malformed.

    Args:
        response: Raw API response dict
        get_items: If True, returns items list. If False, returns first result object.

    Returns:
        List of items, result dict, or empty list/dict on failure
    """
    try:
        tasks = response.get("tasks")
        if not tasks or not isinstance(tasks, list):
            return [] if get_items else {}

        result = tasks[0].get("result")
        if not result or not isinstance(result, list):
            return [] if get_items else {}

        first_result = result[0]
        if not first_result or not isinstance(first_result, dict):
            return [] if get_items else {}

        if get_items:
            items = first_result.get("items")
            return items if items and isinstance(items, list) else []
        return first_result
    except (AttributeError, TypeError, IndexError, KeyError) as e:
        logger.debug(f"Safe result extraction failed: {e}")
        return [] if get_items else {}


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def bucket_average_position(organic: Dict[str, Any]) -> int:
    """Weighted-midpoint average position from organic position buckets (0 if none)."""
    total_weighted = 0.0
    total_count = 0
    for key, weight in POSITION_BUCKET_WEIGHTS:
        count = _int(organic.get(key))
        total_weighted += count * weight
        total_count += count
    if total_count == 0:
        return 0
    return int(round_half_up(total_weighted / total_count))


def map_domain_rank_overview(organic: Dict[str, Any]) -> KeywordMetrics:
    """
    Convert ``items[0].metrics.organic`` of domain_rank_overview into KeywordMetrics.

    top10 is pos_1 + pos_2_3 + pos_4_10; total and top100 are the organic count.
    """
    count = _int(organic.get("count"))
    return KeywordMetrics(
        total=count,
        top10=_int(organic.get("pos_1")) + _int(organic.get("pos_2_3")) + _int(organic.get("pos_4_10")),
        top100=count,
        avg_position=float(bucket_average_position(organic)),
        estimated_traffic=int(round_half_up(float(organic.get("etv") or 0))),
    )


def map_backlink_summary(summary: Dict[str, Any]) -> BacklinkMetrics:
    """
    Convert a backlinks/summary result (rank on the 0-100 scale) into BacklinkMetrics.

    DataForSEO has no Domain Authority; its rank is reported as domain rating.
    """
    return BacklinkMetrics(
        total=_int(summary.get("backlinks")),
        referring_domains=_int(summary.get("referring_domains")),
        domain_rating=_int(summary.get("rank")),
        domain_authority=0,
    )


class DataForSEOError(ProviderAPIError):
    """Custom exception for DataForSEO API errors."""


class DataForSEOClient(BaseAPIClient):
    """
    Async client for DataForSEO API.

    Usage:
        client = DataForSEOClient(login="your_login", password="your_password")

        organic = await client.get_domain_overview("example.co.th")

        await client.close()
    """

    BASE_URL = "https://api.dataforseo.com/v3"
    provider_name = "dataforseo"
    error_class = DataForSEOError

    def __init__(
        self,
        login: str,
        password: str,
        retry_config: Optional[RetryConfig] = None,
        max_connections: int = 50,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize DataForSEO client.

        Args:
            login: DataForSEO login email
            password: DataForSEO API password
            retry_config: Retry configuration (optional)
            max_connections: Maximum concurrent connections
            timeout: Request timeout in seconds
            transport: Custom transport (tests)
        """
        self.login = login
        self.password = password

        # Create auth header
        credentials = f"{login}:{password}"
        auth_token = base64.b64encode(credentials.encode()).decode()

        super().__init__(
            retry_config=retry_config,
            timeout=timeout,
            headers={
                "Authorization": f"Basic {auth_token}",
                "Content-Type": "application/json",
            },
            max_connections=max_connections,
            transport=transport,
        )

    async def post(self, endpoint: str, data: List[Dict[str, Any]], retry: bool = True) -> Dict[str, Any]:
        """
        Make POST request to DataForSEO API.

        Args:
            endpoint: API endpoint path (e.g., "dataforseo_labs/google/domain_rank_overview/live")
            data: Request payload (list of task objects)
            retry: Whether to retry on failure

        Returns:
            API response as dictionary

        Raises:
            DataForSEOError: On HTTP, API-level or task-level error
        """
        url = f"/{endpoint}"

        if retry:
            response = await self._request_with_retry("POST", url, json=data)
        else:
            response = await self._make_request("POST", url, json=data)

        result = self._json(response)
        if not isinstance(result, dict):
            raise DataForSEOError(
                "Unexpected response shape",
                response=result,
                code=ProviderErrorCode.MALFORMED_RESPONSE,
            )

        # Check for API-level errors
        if result.get("status_code") != 20000:
            raise DataForSEOError(
                f"API error: {result.get('status_message', 'Unknown error')}",
                status_code=result.get("status_code"),
                response=result,
            )

        # Check task-level errors
        for task in result.get("tasks") or []:
            task_status = task.get("status_code")
            if task_status not in _TASK_OK:
                error_msg = task.get("status_message", "Task error")
                logger.error(f"DataForSEO task error in {url}: {error_msg} (status: {task_status})")
                raise DataForSEOError(
                    f"Task error: {error_msg}",
                    status_code=task_status,
                    response=task,
                )

        return result

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    async def get_domain_overview(
        self,
        domain: str,
        location_code: int = 2840,
        language_code: str = "en",
    ) -> Optional[Dict[str, Any]]:
        """
        Get organic metrics from the Labs Domain Rank Overview API.

        Args:
            domain: Target domain
            location_code: DataForSEO location code (default: 2840 = US)
            language_code: Language code

        Returns:
            The ``metrics.organic`` dict (count, etv, pos_* buckets) or None when
            DataForSEO has no data for the domain

        Raises:
            DataForSEOError: On API error
        """
        result = await self.post(
            "dataforseo_labs/google/domain_rank_overview/live",
            [{
                "target": domain,
                "location_code": location_code,
                "language_code": language_code,
            }]
        )

        # The structure is: result[0] -> items[0] -> metrics -> organic
        items = safe_get_result(result, get_items=True)
        if not items:
            logger.warning(f"No items in domain_rank_overview for {domain}")
            return None

        organic = (items[0].get("metrics") or {}).get("organic")
        if not isinstance(organic, dict):
            logger.warning(f"No organic metrics in domain_rank_overview for {domain}")
            return None

        logger.info(f"Domain metrics for {domain}: keywords={organic.get('count', 0)}, etv={organic.get('etv', 0)}")
        return organic

    async def get_backlink_summary(self, domain: str) -> Optional[Dict[str, Any]]:
        """
        Get backlink summary with domain rating and referring domains.

        We use rank_scale="one_hundred" to get Domain Rating on a 0-100 scale.
        Without this parameter, DataForSEO returns rank on a 0-1000 scale.

        Args:
            domain: Target domain

        Returns:
            Summary result dict (rank, referring_domains, backlinks, ...) or None

        Raises:
            DataForSEOError: On API error
        """
        result = await self.post(
            "backlinks/summary/live",
            [{
                "target": domain,
                "internal_list_limit": 0,
                "backlinks_status_type": "all",
                "rank_scale": "one_hundred",
            }]
        )

        summary = safe_get_result(result, get_items=False)
        if not summary:
            logger.warning(f"No backlink summary data for {domain}")
            return None

        logger.info(
            f"Backlink summary for {domain}: DR={summary.get('rank', 0)}, "
            f"referring domains={summary.get('referring_domains', 0)}"
        )
        return summary
