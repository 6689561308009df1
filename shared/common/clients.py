# shared/common/clients.py
"""
Rental API Client

HTTP client for the equipment/booking REST API that owns equipment, bookings
and users. All responses use the envelope ``{"success", "data", "message"}``.
"""

import httpx
import logging
from typing import Dict, Any, Optional
from django.conf import settings

from .constants import CORRELATION_ID_HEADER, BookingStatus
from .correlation import get_correlation_id, new_correlation_id

logger = logging.getLogger(__name__)


class UpstreamAPIError(Exception):
    """Raised when the rental API fails or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


# =============================================================================
# BASE SERVICE CLIENT
# =============================================================================

class BaseServiceClient:
    """
    Base class for JSON-over-HTTP communication with an upstream service.
    """

    def __init__(
        self,
        service_name: str,
        base_url: str = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.service_name = service_name
        self.base_url = (base_url or self._get_service_url()).rstrip('/')
        self.timeout = httpx.Timeout(10.0, connect=5.0)
        self.transport = transport

    def _get_service_url(self) -> str:
        """Get service URL from settings"""
        return getattr(settings, 'RENTAL_API_URL', 'http://localhost:3001')

    def _get_headers(self, extra_headers: Dict = None) -> Dict:
        """Build request headers"""
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            CORRELATION_ID_HEADER: get_correlation_id() or new_correlation_id(),
            'X-Client-Version': getattr(settings, 'APP_VERSION', '1.0.0'),
        }
        if extra_headers:
            headers.update(extra_headers)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict = None,
        data: Dict = None,
        headers: Dict = None
    ) -> Dict:
        """Make HTTP request to service"""
        url = f"{self.base_url}{path}"
        request_headers = self._get_headers(headers)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=data,
                    headers=request_headers
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"HTTP error calling {self.service_name}: {e.response.status_code}",
                    extra={
                        'url': url,
                        'status_code': e.response.status_code,
                        'correlation_id': request_headers[CORRELATION_ID_HEADER],
                    }
                )
                payload = self._safe_json(e.response)
                raise UpstreamAPIError(
                    self._extract_message(payload, e.response.status_code),
                    status_code=e.response.status_code,
                    payload=payload,
                ) from e
            except httpx.RequestError as e:
                logger.error(
                    f"Request error calling {self.service_name}: {e}",
                    extra={'url': url, 'correlation_id': request_headers[CORRELATION_ID_HEADER]}
                )
                raise UpstreamAPIError(f"Unable to reach {self.service_name}") from e

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _extract_message(payload: Any, status_code: int) -> str:
        if isinstance(payload, dict) and payload.get('message'):
            return str(payload['message'])
        return f"Request failed with status {status_code}"

    async def get(self, path: str, params: Dict = None, headers: Dict = None) -> Dict:
        return await self._request('GET', path, params=params, headers=headers)

    async def post(self, path: str, data: Dict = None, headers: Dict = None) -> Dict:
        return await self._request('POST', path, data=data, headers=headers)

    async def put(self, path: str, data: Dict = None, headers: Dict = None) -> Dict:
        return await self._request('PUT', path, data=data, headers=headers)


# =============================================================================
# RENTAL API CLIENT
# =============================================================================

class RentalApiClient(BaseServiceClient):
    """Client for the equipment/booking API"""

    def __init__(self, base_url: str = None, transport: httpx.AsyncBaseTransport = None):
        super().__init__('rental-api', base_url=base_url, transport=transport)

    @staticmethod
    def _auth_headers(auth_token: Optional[str]) -> Optional[Dict]:
        if auth_token:
            return {'Authorization': f'Bearer {auth_token}'}
        return None

    # Equipment

    async def get_equipment(self, equipment_id: str) -> Dict:
        return await self.get(f'/equipment/{equipment_id}')

    async def get_equipment_list(
        self,
        category: str = None,
        available: bool = None,
        page: int = None,
        limit: int = None
    ) -> Dict:
        params = {}
        if category:
            params['category'] = category
        if available is not None:
            params['available'] = available
        if page:
            params['page'] = page
        if limit:
            params['limit'] = limit

        return await self.get('/equipment', params=params)

    async def check_availability(self, equipment_id: str, start_date: str, end_date: str) -> Dict:
        return await self.get(
            f'/equipment/{equipment_id}/availability',
            params={'startDate': start_date, 'endDate': end_date}
        )

    # Bookings

    async def create_booking(self, data: Dict) -> Dict:
        return await self.post('/bookings', data)

    async def get_bookings(self, status: str = None, page: int = None, limit: int = None) -> Dict:
        params = {}
        if status:
            params['status'] = status
        if page:
            params['page'] = page
        if limit:
            params['limit'] = limit

        return await self.get('/bookings', params=params)

    async def get_booking(self, booking_id: str) -> Dict:
        return await self.get(f'/bookings/{booking_id}')

    async def update_booking_status(self, booking_id: str, status: str) -> Dict:
        status = BookingStatus(status).value
        return await self.put(f'/bookings/{booking_id}/status', {'status': status})

    # Users

    async def get_current_user(self, auth_token: str = None) -> Dict:
        return await self.get('/auth/me', headers=self._auth_headers(auth_token))

    async def update_profile(self, data: Dict, auth_token: str = None) -> Dict:
        return await self.put('/users/profile', data, headers=self._auth_headers(auth_token))

    # Health

    async def health_check(self) -> Dict:
        return await self.get('/health')
