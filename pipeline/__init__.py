"""Lead discovery, parsing, deduplication and qualification pipeline.

Modules:
  parser        - raw search hit -> ParsedLead (or None for noise)
  credentials   - licenses / certifications / specialty from free text
  query_expander- LLM rewrite of the recruiter's query
  enrichment    - webset item field resolution strategies
  scorer        - batch LLM qualification scoring
  credits       - budget, atomic charge, audit row, notifications
  rate_limiter  - sliding-window per-user limiter
  search        - synchronous search orchestrator, webset start
  webhook       - webset completion handler
"""
