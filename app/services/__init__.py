"""
Services module for the Procurement Rating Service.

    s3_storage.py          - uploaded document storage (S3)
    document_rater.py      - Gemini document / holistic raters
    snowflake.py           - submission store connection factory
    redis_cache.py         - Redis client wrapper (cache + locks)
    cache.py               - cache singleton with graceful degradation
    rating_lock.py         - single-flight lock per submission
    rating_orchestrator.py - end-to-end submission rating run
"""
