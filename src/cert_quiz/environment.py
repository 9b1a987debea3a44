"""
environment.py — Optional environment details for the certificate
=================================================================
Collects the fields printed in the certificate's "Environment Details"
block.  Every field is optional; the coarse location read is the only
blocking call and is bounded by a timeout.

  read_location(provider, timeout_s)
      Runs *provider* on a worker thread.  Timeout, refusal
      (PermissionError) or any provider failure resolves to ``None`` so the
      certificate simply omits the location line.

  collect_extra_details(...)
      Builds an ExtraDetails from the local clock plus whatever the
      presentation layer supplied (user agent, location provider).
"""

from __future__ import annotations

import concurrent.futures
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from cert_quiz.models import ExtraDetails, GeoLocation

logger = logging.getLogger(__name__)

LocationProvider = Callable[[], Any]


def _as_location(value: Any) -> Optional[GeoLocation]:
    if value is None or isinstance(value, GeoLocation):
        return value
    if isinstance(value, dict):
        return ExtraDetails.from_mapping({"location": value}).location
    if isinstance(value, (tuple, list)) and len(value) in (2, 3):
        try:
            lat, lon = float(value[0]), float(value[1])
            acc = float(value[2]) if len(value) == 3 and value[2] is not None else None
        except (TypeError, ValueError):
            return None
        return GeoLocation(latitude=lat, longitude=lon, accuracy=acc)
    return None


def read_location(provider: Optional[LocationProvider], timeout_s: float = 3.0) -> Optional[GeoLocation]:
    """Return the provider's location, or ``None`` on timeout / refusal / error."""
    if provider is None:
        return None

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = executor.submit(provider)
    try:
        return _as_location(future.result(timeout=timeout_s))
    except concurrent.futures.TimeoutError:
        logger.warning("Location read timed out after %.1fs; omitting location", timeout_s)
        future.cancel()
        return None
    except PermissionError:
        logger.info("Location access refused; omitting location")
        return None
    except Exception as exc:  # provider is third-party code; location is best-effort
        logger.warning("Location provider failed (%s); omitting location", exc)
        return None
    finally:
        # never block on a hung provider
        executor.shutdown(wait=False)


def collect_extra_details(
    user_agent: Optional[str] = None,
    location_provider: Optional[LocationProvider] = None,
    location_timeout_s: float = 3.0,
    now: Optional[datetime] = None,
) -> ExtraDetails:
    """Snapshot local/UTC time and timezone, plus the optional fields supplied."""
    local = (now or datetime.now(timezone.utc)).astimezone()
    return ExtraDetails(
        local_time=local.strftime("%Y-%m-%d %H:%M:%S"),
        utc_time=local.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
        time_zone=local.tzname() or None,
        user_agent=(user_agent or "").strip() or None,
        location=read_location(location_provider, location_timeout_s),
    )
