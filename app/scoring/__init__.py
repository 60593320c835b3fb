"""
scoring/ - Submission rating

Modules:
    utils.py             - rounding and averaging helpers
    settle.py            - settle-all concurrency primitive
    prompts.py           - AI rater prompt templates
    document_section.py  - shared document fan-out for core / experience
    core_rater.py        - core compliance section
    experience_rater.py  - experience section
    team_rater.py        - key team members (files + holistic rating)
    price_rater.py       - lowest-price formula
    ranking.py           - weighted bidder ranking per procurement
"""
