from typing import Any, Dict, List

from tutor.models.message import Message


def aggregate_metrics(messages: List[Message]) -> Dict[str, Any]:
    """Sum the token and time metrics of the assistant messages produced in this run."""
    metrics: Dict[str, Any] = {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0, "time": 0.0}
    for m in messages:
        if m.role != "assistant" or m.from_history:
            continue
        metrics["input_tokens"] += m.metrics.input_tokens
        metrics["output_tokens"] += m.metrics.output_tokens
        metrics["total_tokens"] += m.metrics.total_tokens
        metrics["time"] += m.metrics.response_time or 0.0
    return metrics
