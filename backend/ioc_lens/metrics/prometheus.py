from prometheus_client import Counter, Histogram

analyses_total = Counter(
    "ioc_analyses_total",
    "Total URL analyses served",
    ["origin"],
)

scrape_attempts_total = Counter(
    "scrape_attempts_total",
    "Content retrieval attempts by tier",
    ["tier", "outcome"],
)

reasoning_latency_seconds = Histogram(
    "reasoning_latency_seconds",
    "Latency of calls to the reasoning capability",
    ["task"],
)

search_query_generations_total = Counter(
    "search_query_generations_total",
    "Total search query generations",
    ["persisted"],
)

api_request_latency_seconds = Histogram(
    "api_request_latency_seconds",
    "API request latency in seconds",
    ["route", "method", "status"],
)
