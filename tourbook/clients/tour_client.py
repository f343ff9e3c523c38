from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx
from httpx_retries import Retry, RetryTransport

from tourbook.config import ApiConfig
from tourbook.exceptions import (
    BackendError,
    ExpiredPromoCode,
    InvalidPromoCode,
    PackageNotFound,
    PromoCodeError,
)
from tourbook.logging import log_method_inputs_and_outputs
from tourbook.models import (
    CustomForm,
    Package,
    PaymentIntent,
    PromoCode,
    RateGroupsResult,
    TimeSlot,
)

logger = logging.getLogger(__name__)


class LiveTourClient:
    HEADERS = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 0,
        backoff_factor: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ):
        # Only reads are retried; bookings and payments are never replayed
        retry = Retry(
            total=retries,
            backoff_factor=backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        self.client = httpx.Client(
            base_url=base_url,
            transport=RetryTransport(transport=transport, retry=retry),
            timeout=timeout,
        )
        self.client.headers.update(self.HEADERS)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> LiveTourClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _data(response: httpx.Response) -> Any:
        """Unwrap the `{"code": ..., "data": ...}` envelope."""
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(
                f"{response.request.method} {response.request.url.path} "
                f"returned a non-JSON body: {e}",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise BackendError(
                f"{response.request.method} {response.request.url.path} "
                "returned an unexpected body",
                status_code=response.status_code,
            )
        code = body.get("code")
        if code != 200:
            raise BackendError(
                f"{response.request.method} {response.request.url.path} "
                f"returned code {code}",
                status_code=code,
            )
        return body.get("data")

    @log_method_inputs_and_outputs
    def get_package(self, tenant_id: str, package_id: int) -> Package:
        logger.info(f"Fetching package {package_id} for tenant {tenant_id}...")
        response = self.client.get(f"package/{tenant_id}/{package_id}")
        if response.status_code == 404:
            raise PackageNotFound(
                f"Package {package_id} not found for tenant {tenant_id}", 404
            )
        try:
            data = self._data(response)
        except BackendError as e:
            raise PackageNotFound(str(e), e.status_code) from e

        return Package.model_validate(
            {**data["package"], "tenant_id": data.get("tenant_id") or tenant_id}
        )

    @log_method_inputs_and_outputs
    def get_time_slots(
        self, tenant_id: str, package_id: int, date: str
    ) -> list[TimeSlot]:
        response = self.client.post(
            f"time-slots/{tenant_id}/{package_id}", json={"date": date}
        )
        data = self._data(response) or {}
        return [TimeSlot(**slot) for slot in data.get("slots", [])]

    @log_method_inputs_and_outputs
    def get_rate_groups(
        self,
        tenant_id: str,
        package_id: int,
        date: str,
        slot_id: int | None = None,
    ) -> RateGroupsResult:
        payload: dict[str, Any] = {"date": date}
        if slot_id is not None:
            payload["slot_id"] = slot_id

        response = self.client.post(f"rate-groups/{tenant_id}/{package_id}", json=payload)
        return RateGroupsResult(**(self._data(response) or {}))

    @log_method_inputs_and_outputs
    def get_custom_form(self, tenant_id: str, package_id: int) -> CustomForm | None:
        """Add-on form of a package, or None when it has none."""
        response = self.client.get(f"custom-form/{tenant_id}/{package_id}")
        if response.status_code == 404:
            return None

        data = self._data(response)
        if not data or not data.get("custom_form"):
            return None
        return CustomForm(**data["custom_form"])

    @log_method_inputs_and_outputs
    def set_coupon(
        self, tenant_id: str, package_id: int, code: str, date: str
    ) -> PromoCode:
        response = self.client.post(
            f"set-coupon/{tenant_id}/{package_id}",
            json={"coupon": code, "date": date},
        )
        match response.status_code:
            case 404:
                raise InvalidPromoCode(code)
            case 410:
                raise ExpiredPromoCode(code)

        try:
            data = self._data(response)
        except (BackendError, httpx.HTTPStatusError) as e:
            raise PromoCodeError(code) from e
        return PromoCode(**data["coupon"])

    @log_method_inputs_and_outputs
    def create_payment_intent(
        self, amount: Decimal, currency: str = "usd", metadata: dict | None = None
    ) -> PaymentIntent:
        response = self.client.post(
            "create-payment-intent",
            json={
                # Payment processors expect the smallest currency unit
                "amount": int(amount * 100),
                "currency": currency,
                "metadata": metadata or {},
            },
        )
        data = self._data(response)
        return PaymentIntent(
            id=data.get("id"),
            client_secret=data["client_secret"],
            amount=amount,
        )

    @log_method_inputs_and_outputs
    def create_bookings(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self.client.post("create-bookings", json=payload)
        return self._data(response) or {}


def get_client(config: ApiConfig, transport: httpx.BaseTransport | None = None) -> LiveTourClient:
    """Get client for the configured backend."""
    return LiveTourClient(
        base_url=config.base_url,
        timeout=config.timeout,
        retries=config.retries,
        backoff_factor=config.backoff_factor,
        transport=transport,
    )
