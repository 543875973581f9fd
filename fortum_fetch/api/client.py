"""My Fortum REST API client with retry logic and token refresh."""

import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, List, Callable
import requests

from ..exceptions import APIResponseError, RequestStatusError
from ..utils.date_parser import format_rfc3339
from ..utils.logger import mask_secret
from .models import CustomerInfo, MeteringPoint, Usage, get_field


logger = logging.getLogger(__name__)


CUSTOMER_INFO_PATH = "/api/customer/representations"
CONTRACT_PATH = "/api/contracts/customer/{customer_id}"
CONSUMPTION_PATH = "/api/v2/consumption"

CONTRACT_STATUSES = "A,M,O,S"

# Default consumption window: from three days before "to", which is tomorrow
DEFAULT_LOOKAHEAD = timedelta(hours=24)
DEFAULT_LOOKBACK = timedelta(days=3)


class FortumAPIClient:
    """API client for the My Fortum REST endpoints."""

    # HTTP status codes that should trigger retry
    RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://web.fortum.fi",
        timeout_seconds: float = 10,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
        on_session_expired: Optional[Callable[[], Optional[str]]] = None,
    ):
        """Initialize API client.

        Args:
            access_token: Bearer token read from the portal (may be empty)
            base_url: Base URL for My Fortum
            timeout_seconds: Timeout for each HTTP request (default: 10)
            max_retries: Maximum attempts for retryable failures (default: 3)
            session: requests session to use (default: new session)
            on_session_expired: Called on 401; returns a fresh token or None
        """
        self.access_token = access_token or ""
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()
        self.on_session_expired = on_session_expired

    def _refresh_token(self) -> bool:
        if not self.on_session_expired:
            return False
        logger.info("Access token rejected, attempting to acquire a new one...")
        token = self.on_session_expired()
        if not token:
            logger.error("Session refresh failed")
            return False
        self.access_token = token
        logger.info(f"Session refreshed, new token {mask_secret(token)}")
        return True

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None, what: str = "request") -> Any:
        """GET a JSON document with retry and token refresh.

        Args:
            path: Path below the base URL
            params: Query parameters
            what: Description used in error messages

        Returns:
            Decoded JSON body

        Raises:
            RequestStatusError: On unexpected status or transport failure
            APIResponseError: If the body is not valid JSON
        """
        url = f"{self.base_url}{path}"
        refresh_attempted = False
        attempt = 0

        while attempt < self.max_retries:
            if not self.access_token:
                if not refresh_attempted and self._refresh_token():
                    refresh_attempted = True
                    continue
                raise RequestStatusError("accessToken cannot be empty", 401)

            headers = {
                "Authorization": f"Bearer {self.access_token}",
                "Accept": "application/json",
            }
            logger.debug(f"Request attempt {attempt + 1}/{self.max_retries}: GET {url} {params or ''}")

            try:
                response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(f"Request failed: {e}, attempt {attempt + 1}/{self.max_retries}")
                attempt += 1
                if attempt < self.max_retries:
                    time.sleep(2 ** (attempt - 1))
                    continue
                raise RequestStatusError(f"{what} failed: {e}", 500) from e

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    logger.debug(f"Response content (first 500 chars): {response.text[:500]}")
                    raise APIResponseError(f"unable to parse {what} response") from e

            if response.status_code == 401:
                logger.warning(f"Unauthorized (401) for {what}")
                if not refresh_attempted and self._refresh_token():
                    refresh_attempted = True
                    continue
                raise RequestStatusError(f"invalid response status for {what}", 401)

            if response.status_code in self.RETRY_STATUS_CODES:
                attempt += 1
                logger.warning(
                    f"Request failed with status {response.status_code}, "
                    f"attempt {attempt}/{self.max_retries}"
                )
                if attempt < self.max_retries:
                    if response.status_code == 429:
                        wait_time = self._retry_after(response)
                        logger.warning(f"Rate limited. Waiting {wait_time} seconds")
                    else:
                        wait_time = 2 ** (attempt - 1)  # 1, 2, 4 seconds
                        logger.debug(f"Backing off for {wait_time} seconds")
                    time.sleep(wait_time)
                    continue

            logger.error(f"Request failed with status {response.status_code}: {response.text[:200]}")
            raise RequestStatusError(f"invalid response status for {what}", response.status_code)

        raise RequestStatusError(f"{what} failed after {self.max_retries} attempts", 500)

    @staticmethod
    def _retry_after(response: requests.Response) -> int:
        retry_after = response.headers.get('Retry-After', 60)
        try:
            return int(retry_after)
        except (ValueError, TypeError):
            return 60

    def get_customer_info(self) -> CustomerInfo:
        """Retrieve the customer represented by the access token.

        Raises:
            RequestStatusError: On HTTP failure (401 when the token is invalid)
            APIResponseError: If the API reports an error
        """
        logger.info("Retrieving customer information")
        data = self._get_json(CUSTOMER_INFO_PATH, what="customer information")
        customer_info = CustomerInfo.from_dict(data)
        if customer_info.error:
            raise APIResponseError("invalid customer info response")
        logger.debug(f"Customer id {customer_info.owner.customer_id}")
        return customer_info

    def get_metering_points(self, customer_id: int) -> List[MeteringPoint]:
        """Retrieve metering points of the customer's active contracts.

        District heat metering points are skipped.

        Args:
            customer_id: Customer ID from get_customer_info()

        Returns:
            List of metering points
        """
        logger.info(f"Retrieving contracts for customer {customer_id}")
        data = self._get_json(
            CONTRACT_PATH.format(customer_id=customer_id),
            params={"status": CONTRACT_STATUSES},
            what="contract",
        )
        if get_field(data, "error", False):
            raise APIResponseError("invalid contract response")

        contracts = get_field(data, "contracts") or {}
        points = []
        for active in get_field(contracts, "active") or []:
            point = MeteringPoint.from_contract(active)
            if point.is_district_heat:
                logger.debug(f"Skipping district heat metering point {point.metering_point_id}")
                continue
            logger.debug(f"Found active contract: {point}")
            points.append(point)
        return points

    def get_consumption_data(
        self,
        customer_id: int,
        metering_points: List[MeteringPoint],
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Usage]:
        """Retrieve consumption for each metering point.

        Raises:
            APIError: If any metering point fails; the message names the point
        """
        logger.info(f"Processing {len(metering_points)} metering points")
        usage = []
        for metering_point in metering_points:
            try:
                usage.append(self.get_metering_point_usage(customer_id, metering_point, date_from, date_to))
            except RequestStatusError as e:
                raise RequestStatusError(
                    f"could not get usage for meteringPointId {metering_point.metering_point_id}: {e.message}",
                    e.status,
                ) from e
            except APIResponseError as e:
                raise APIResponseError(
                    f"could not get usage for meteringPointId {metering_point.metering_point_id}: {e}"
                ) from e
        return usage

    def get_metering_point_usage(
        self,
        customer_id: int,
        metering_point: MeteringPoint,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Usage:
        """Retrieve consumption for one metering point.

        Args:
            customer_id: Customer ID
            metering_point: Metering point to query
            date_from: First day (default: three days before date_to)
            date_to: Last day (default: now + 24 hours)

        Returns:
            Usage with metering_point attached
        """
        logger.debug(
            f"Get consumption for meteringPointNo={metering_point.metering_point_no} "
            f"meteringPointId={metering_point.metering_point_id}"
        )
        now = date_to or datetime.now(timezone.utc) + DEFAULT_LOOKAHEAD
        then = date_from or now - DEFAULT_LOOKBACK
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        params = {
            "customerId": str(customer_id),
            "meteringPointNo": str(metering_point.metering_point_no),
            "meteringPointId": metering_point.metering_point_id,
            "resolution": metering_point.resolution,
            "from": then.strftime('%Y-%m-%d'),
            "to": now.strftime('%Y-%m-%d'),
            "latestMeasurement": format_rfc3339(now),
            "contractType": "Electricity",
            "isDistrictHeat": "false",
        }
        data = self._get_json(
            CONSUMPTION_PATH,
            params=params,
            what=f"consumption of meteringPointId {metering_point.metering_point_id}",
        )
        usage = Usage.from_dict(data, metering_point=metering_point)
        logger.debug(
            f"Received {len(usage.consumption)} consumption items for "
            f"{metering_point.metering_point_id} ({metering_point.address.format()})"
        )
        return usage
