"""Prometheus metrics for statement ingestion, alerting, insights and LLM calls"""

from prometheus_client import Counter, Histogram

# Statement ingestion
statements_processed_counter = Counter(
    "financial_guru_statements_processed_total",
    "Statements processed",
    ["outcome", "institution"],  # completed | failed
)

statement_processing_histogram = Histogram(
    "financial_guru_statement_processing_seconds",
    "Time spent extracting and parsing a statement",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

transactions_parsed_counter = Counter(
    "financial_guru_transactions_parsed_total",
    "Transactions extracted from statements",
)

# Alerts and insights
alerts_created_counter = Counter(
    "financial_guru_alerts_created_total",
    "Alerts raised",
    ["type"],
)

insights_generated_counter = Counter(
    "financial_guru_insights_generated_total",
    "Insights generated by the insight engine",
    ["type"],
)

# Ollama
ollama_latency_histogram = Histogram(
    "financial_guru_ollama_latency_seconds",
    "Ollama generate call latency",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

ollama_failure_counter = Counter(
    "financial_guru_ollama_failures_total",
    "Failed Ollama calls",
)

# Scheduler
scheduler_job_counter = Counter(
    "financial_guru_scheduler_job_runs_total",
    "Background job executions",
    ["job", "outcome"],  # ok | error
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_statement(outcome: str, institution: str, transaction_count: int) -> None:
    """Record statement outcome and parsed transaction volume"""
    statements_processed_counter.labels(outcome=outcome, institution=institution).inc()
    if transaction_count:
        transactions_parsed_counter.inc(transaction_count)
