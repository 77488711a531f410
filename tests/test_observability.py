"""Tests for observability module."""

from httpx import AsyncClient

from context_match.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_context_request,
    track_embedding_request,
    track_llm_request,
    track_search_results,
    track_vectorstore_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(
        self, client: AsyncClient
    ) -> None:
        """Metrics endpoint returns Prometheus format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_llm_request_success(self) -> None:
        """Successful chat completions record latency and tokens."""
        track_llm_request(
            model="test-model",
            duration=1.5,
            prompt_tokens=100,
            completion_tokens=50,
        )

        metrics = get_metrics().decode()
        assert 'llm_tokens_total{model="test-model",type="prompt"}' in metrics
        assert "llm_request_duration_seconds" in metrics

    def test_track_llm_request_failure(self) -> None:
        """Failed chat completions are counted with error status."""
        track_llm_request(model="failing-model", duration=0.5, success=False)

        metrics = get_metrics().decode()
        assert 'llm_requests_total{model="failing-model",status="error"}' in metrics

    def test_track_embedding_request(self) -> None:
        """Embedding calls are recorded."""
        track_embedding_request(model="text-embedding-3-small", duration=0.1)

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert 'embedding_requests_total{model="text-embedding-3-small"' in metrics

    def test_track_vectorstore_operation(self) -> None:
        """Vector store calls are recorded by operation."""
        track_vectorstore_operation("upsert", 0.02)

        metrics = get_metrics().decode()
        assert 'operation="upsert"' in metrics

    def test_track_search_results(self) -> None:
        """Search results and top score are recorded."""
        track_search_results(results_returned=5, top_score=0.95)

        metrics = get_metrics().decode()
        assert "search_results_returned" in metrics
        assert "search_top_score" in metrics

    def test_track_context_request(self) -> None:
        """Request outcomes are counted."""
        track_context_request("embedding")

        metrics = get_metrics().decode()
        assert 'context_requests_total{outcome="embedding"}' in metrics


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    async def test_middleware_records_request_metrics(self, client: AsyncClient) -> None:
        """Middleware records HTTP request metrics."""
        await client.get("/health/live")

        metrics = get_metrics().decode()
        assert 'endpoint="/health"' in metrics
        assert "http_requests_total" in metrics

    def test_normalizes_api_paths(self) -> None:
        """API paths collapse to their first segment."""
        middleware = MetricsMiddleware(app=None)

        assert middleware._normalize_endpoint("/api/user-context") == "/api/user-context"
        assert middleware._normalize_endpoint("/api/user-context/extra") == "/api/user-context"
        assert middleware._normalize_endpoint("/health/ready") == "/health"
        assert middleware._normalize_endpoint("/other") == "/other"
