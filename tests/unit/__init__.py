"""Unit tests.

Purpose
- Verify a single module/class/function in isolation.

Guidelines
- Build contexts from the fakes in tests/fixtures/contexts.py rather than the
  packaged site and admin configurations.
- Prefer behavior-centric assertions over implementation details.
- Keep tests small, fast, and deterministic.
"""
