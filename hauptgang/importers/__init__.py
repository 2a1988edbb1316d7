"""
Recipe import pipeline: URL validation, page fetching, JSON-LD and LLM
extraction, and the background jobs that write results back.
"""
