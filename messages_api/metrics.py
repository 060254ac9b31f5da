from collections import defaultdict
from typing import Dict, Tuple


# (path, status) -> count
_http_requests_total: Dict[Tuple[str, str], int] = defaultdict(int)

# result -> count (ok / invalid_argument / store_unavailable)
_search_requests_total: Dict[str, int] = defaultdict(int)

# simple latency buckets in ms
_latency_buckets = {
    "100": 0,
    "500": 0,
    "+Inf": 0,
}
_latency_count = 0

# items returned per search page, cumulative by upper bound
_PAGE_SIZE_BOUNDS = (0, 1, 10, 50, 100)
_search_page_size_buckets: Dict[str, int] = {str(b): 0 for b in _PAGE_SIZE_BOUNDS}
_search_page_size_buckets["+Inf"] = 0
_search_page_size_count = 0
_search_page_size_sum = 0


def inc_http_request(path: str, status: int) -> None:
    key = (path, str(status))
    _http_requests_total[key] += 1


def inc_search_result(result: str) -> None:
    _search_requests_total[result] += 1


def observe_search_page_size(returned: int) -> None:
    global _search_page_size_count, _search_page_size_sum
    _search_page_size_count += 1
    _search_page_size_sum += returned
    for bound in _PAGE_SIZE_BOUNDS:
        if returned <= bound:
            _search_page_size_buckets[str(bound)] += 1
    _search_page_size_buckets["+Inf"] += 1


def observe_latency_ms(latency_ms: float) -> None:
    global _latency_count
    _latency_count += 1
    if latency_ms <= 100:
        _latency_buckets["100"] += 1
    if latency_ms <= 500:
        _latency_buckets["500"] += 1
    _latency_buckets["+Inf"] += 1


def reset_metrics() -> None:
    global _latency_count, _search_page_size_count, _search_page_size_sum
    _http_requests_total.clear()
    _search_requests_total.clear()
    for le in _latency_buckets:
        _latency_buckets[le] = 0
    _latency_count = 0
    for le in _search_page_size_buckets:
        _search_page_size_buckets[le] = 0
    _search_page_size_count = 0
    _search_page_size_sum = 0


def render_metrics() -> str:
    """Return plain text metrics."""
    lines: list[str] = []

    for (path, status), value in _http_requests_total.items():
        lines.append(
            f'http_requests_total{{path="{path}",status="{status}"}} {value}'
        )

    for result, value in _search_requests_total.items():
        lines.append(
            f'search_requests_total{{result="{result}"}} {value}'
        )

    for le, value in _latency_buckets.items():
        lines.append(
            f'request_latency_ms_bucket{{le="{le}"}} {value}'
        )
    lines.append(f"request_latency_ms_count {_latency_count}")

    for le, value in _search_page_size_buckets.items():
        lines.append(
            f'search_page_size_bucket{{le="{le}"}} {value}'
        )
    lines.append(f"search_page_size_sum {_search_page_size_sum}")
    lines.append(f"search_page_size_count {_search_page_size_count}")

    return "\n".join(lines) + "\n"
