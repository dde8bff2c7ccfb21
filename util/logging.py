"""
Structured logging for the semantic search core.
Every component logs through the shared `logger` instance below.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for vector, embedding, search and recommendation operations."""

    def __init__(self, name: str = "book_semantic"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector store operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_embedding(self, status: str, text_length: int, attempts: int = 1, reason: str = None):
        """Log an embedding request outcome. Never logs the text itself."""
        details = {"text_length": text_length, "attempts": attempts}
        if reason:
            details["reason"] = reason[:100]

        self.log_operation("embedding.embed", status, details)

    def log_search(self, query: str, mode: str, result_count: int, details: Dict[str, Any] = None):
        """Log a search request with the path that served it."""
        log_details = {
            "query": query[:50] + "..." if len(query) > 50 else query,
            "mode": mode,
            "result_count": result_count,
        }
        if details:
            log_details.update(details)

        self.log_operation("search.semantic", "success", log_details)

    def log_recommendation(self, owned_count: int, candidate_count: int, result_count: int, strategy: str, cache_hits: int = 0):
        """Log a recommendation request."""
        log_details = {
            "owned_count": owned_count,
            "candidate_count": candidate_count,
            "result_count": result_count,
            "strategy": strategy,
            "cache_hits": cache_hits,
        }
        self.log_operation("recommendation.recommend", "success", log_details)

    def log_cache_event(self, cache_name: str, event: str, key: str):
        """Log a cache hit, miss, store or expiry."""
        self.log_operation(f"cache.{cache_name}", event, {"key": key})

    def log_index_batch(self, total: int, succeeded: int, failed_ids: List[str] = None):
        """Log a bulk indexing run."""
        log_details = {"total": total, "succeeded": succeeded}
        if failed_ids:
            log_details["failed_ids"] = failed_ids[:20]

        status = "success" if succeeded == total else "partial"
        self.log_operation("vector.index_all", status, log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
