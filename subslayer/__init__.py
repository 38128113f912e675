"""
SubSlayer - subscription tracking from pasted confirmation emails.

Package layout:
    extraction/     Email -> ParsedSubscription pipeline (dates, sanitizer, pipeline)
    llm/            Prompt construction and completion provider adapters
    subscriptions/  Persisted subscriptions, owner-scoped repository, display helpers
    notifications/  Renewal reminder job and SMTP delivery
    api/            FastAPI application and routes
"""

__version__ = "1.0.0"
