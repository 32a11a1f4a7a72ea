"""Services module for the OilFlow Assistant."""
from .analytics import AnalyticsSink, InMemoryAnalyticsSink
from .escalation import EscalationEngine
from .intent_classifier import IntentClassifier
from .pipeline import ChatPipeline, ChatServiceUnavailable, InvalidChatInput, build_pipeline, parse_request

__all__ = [
    "AnalyticsSink",
    "InMemoryAnalyticsSink",
    "EscalationEngine",
    "IntentClassifier",
    "ChatPipeline",
    "ChatServiceUnavailable",
    "InvalidChatInput",
    "build_pipeline",
    "parse_request",
]
