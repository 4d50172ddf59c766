"""
Core utilities: exceptions and shared concurrency helpers.

Used across the ML pipeline, the agent worker and the scanner.
"""
