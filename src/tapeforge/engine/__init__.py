"""Run orchestration, persistence, and evaluation scheduling."""
