"""Business logic services.

Services contain all business logic and are called by routes.
Services should be deterministic when possible and accept dependencies explicitly
(record repository, TTL cache, clock).
"""
