"""
Client for the public-budget GraphQL API.

One HTTP POST per call. Every failure mode (timeout, connection error,
non-2xx status, non-JSON body, GraphQL error payload, a response whose
shape is not the expected objects and lists) surfaces as
TransientFetchError so callers can treat it as "no data from this attempt".
"""

import threading
from typing import Any, Dict, List, Optional

import requests

from .env import DEFAULT_GRAPHQL_URL
from .errors import TransientFetchError
from .logger import get_logger
from .retry import RetryError, RetryableStatusError, exponential_backoff, should_retry_http_status
from .schema import CandidateEntity, HousingRow, TaxRow

logger = get_logger()

TAX_CATEGORY = "07.01.01"  # building tax paid by individuals
HOUSING_DATASET = "LOC101B"

SEARCH_QUERY = """
query EntitySearch($search: String, $limit: Int) {
    entities(filter: { search: $search }, limit: $limit) {
        nodes {
            name
            cui
            uat { county_name name siruta_code }
        }
    }
}
"""

TAX_QUERY = """
query AggregatedLineItems($filter: AnalyticsFilterInput!, $limit: Int) {
    aggregatedLineItems(filter: $filter, limit: $limit) {
        nodes { fn_c: functional_code amount }
    }
}
"""

HOUSING_QUERY = """
query InsObservations($datasetCode: String!, $filter: InsObservationFilterInput, $limit: Int) {
    insObservations(datasetCode: $datasetCode, filter: $filter, limit: $limit) {
        nodes {
            value
            time_period { year }
            territory { siruta_code name_ro }
        }
    }
}
"""


@exponential_backoff(
    max_retries=2,
    base_delay=1.0,
    exceptions=(requests.exceptions.ConnectionError, RetryableStatusError),
)
def _post_with_retry(session: requests.Session, url: str, payload: dict, timeout: float):
    """POST with automatic retry on connection errors and throttling."""
    resp = session.post(url, json=payload, timeout=timeout)
    if should_retry_http_status(resp.status_code):
        raise RetryableStatusError(resp.status_code)
    return resp


def _expect_dict(value: Any, what: str) -> Dict[str, Any]:
    """None reads as empty; any other non-object is a malformed payload."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.record_failure("MalformedPayload")
        raise TransientFetchError(f"unexpected payload: {what} is {type(value).__name__}")
    return value


def _nodes(data: Dict[str, Any], root: str) -> List[Dict[str, Any]]:
    section = _expect_dict(data.get(root), root)
    nodes = section.get("nodes")
    if nodes is None:
        return []
    if not isinstance(nodes, list):
        logger.record_failure("MalformedPayload")
        raise TransientFetchError(f"unexpected payload: {root}.nodes is {type(nodes).__name__}")
    return [_expect_dict(n, f"{root} node") for n in nodes]


def parse_search_nodes(nodes: List[Dict[str, Any]]) -> List[CandidateEntity]:
    """Map entity search nodes to candidates, keeping index order."""
    candidates: List[CandidateEntity] = []
    for node in nodes:
        cui = node.get("cui")
        if cui in (None, ""):
            continue
        uat = _expect_dict(node.get("uat"), "uat")
        siruta = uat.get("siruta_code")
        candidates.append(
            CandidateEntity(
                display_name=node.get("name") or "",
                tax_id=str(cui),
                region=uat.get("county_name") or "",
                locality_name=uat.get("name") or "",
                sub_code=str(siruta) if siruta not in (None, "") else None,
            )
        )
    return candidates


def parse_tax_nodes(nodes: List[Dict[str, Any]]) -> List[TaxRow]:
    return [TaxRow(code=n.get("fn_c") or "", amount=n.get("amount")) for n in nodes]


def parse_housing_nodes(nodes: List[Dict[str, Any]]) -> List[HousingRow]:
    rows: List[HousingRow] = []
    for n in nodes:
        period = _expect_dict(n.get("time_period"), "time_period")
        territory = _expect_dict(n.get("territory"), "territory")
        rows.append(HousingRow(value=n.get("value"), year=period.get("year"), territory_name=territory.get("name_ro")))
    return rows


class TransparentaClient:
    """
    Search index and statistics source backed by the GraphQL API.

    Without an explicit session each thread gets its own requests.Session.
    A session passed in is shared by every thread.
    """

    def __init__(
        self,
        url: str = DEFAULT_GRAPHQL_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()
        if session is not None:
            session.headers.setdefault("Content-Type", "application/json")

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.setdefault("Content-Type", "application/json")
            self._local.session = session
        return session

    def execute(self, query: str, variables: Dict[str, Any], operation: str = "graphql") -> Dict[str, Any]:
        """
        Run one GraphQL request and return its "data" section.

        Raises:
            TransientFetchError: On timeout, HTTP or payload errors
        """
        logger.record_api_call(operation)
        try:
            resp = _post_with_retry(self.session, self.url, {"query": query, "variables": variables}, self.timeout)
            resp.raise_for_status()
        except requests.exceptions.Timeout:
            logger.record_failure("Timeout")
            logger.warning("GraphQL request timed out", operation=operation, timeout=self.timeout)
            raise TransientFetchError(f"{operation} request timed out after {self.timeout}s")
        except RetryError as e:
            logger.record_failure("RetryExhausted")
            logger.warning("GraphQL request failed after retries", operation=operation, error=str(e))
            raise TransientFetchError(f"{operation} request failed: {e}")
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            logger.record_failure(f"HTTPError_{status}")
            logger.warning("GraphQL request failed", operation=operation, status=status)
            raise TransientFetchError(f"{operation} request failed ({status})")
        except requests.exceptions.RequestException as e:
            logger.record_failure("RequestException")
            logger.error("GraphQL request error", operation=operation, error=str(e))
            raise TransientFetchError(f"{operation} request error: {e}")

        try:
            payload = resp.json()
        except ValueError:
            logger.record_failure("MalformedPayload")
            raise TransientFetchError(f"{operation} returned a non-JSON body")
        if not isinstance(payload, dict):
            logger.record_failure("MalformedPayload")
            raise TransientFetchError(f"{operation} returned an unexpected payload")

        errors = payload.get("errors")
        if errors:
            messages = ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            logger.record_failure("GraphQLError")
            logger.warning("GraphQL returned errors", operation=operation, errors=messages)
            raise TransientFetchError(f"{operation} failed: {messages}")

        return _expect_dict(payload.get("data"), "data")

    def search(self, query: str, limit: int = 10) -> List[CandidateEntity]:
        data = self.execute(SEARCH_QUERY, {"search": query, "limit": limit}, operation="search")
        return parse_search_nodes(_nodes(data, "entities"))

    def tax_rows(self, tax_id: str, year: int, category: str = TAX_CATEGORY) -> List[TaxRow]:
        variables = {
            "filter": {
                "report_period": {
                    "type": "YEAR",
                    "selection": {"interval": {"start": str(year), "end": str(year)}},
                },
                "account_category": "vn",
                "report_type": "PRINCIPAL_AGGREGATED",
                "entity_cuis": [tax_id],
                "functional_prefixes": [category],
                "is_uat": True,
                "normalization": "total",
                "show_period_growth": False,
                "currency": "RON",
                "inflation_adjusted": False,
            },
            "limit": 150000,
        }
        data = self.execute(TAX_QUERY, variables, operation="tax")
        return parse_tax_nodes(_nodes(data, "aggregatedLineItems"))

    def housing_rows(self, sub_code: str, dataset: str = HOUSING_DATASET) -> List[HousingRow]:
        variables = {
            "datasetCode": dataset,
            "filter": {"sirutaCodes": [sub_code], "territoryLevels": ["LAU"]},
            "limit": 100,
        }
        data = self.execute(HOUSING_QUERY, variables, operation="housing")
        return parse_housing_nodes(_nodes(data, "insObservations"))
