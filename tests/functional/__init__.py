"""Functional tests.

Purpose
- Validate the pytest plugin as a user sees it: outcomes and messages of a
  pytest run in a fresh interpreter.

Guidelines
- Treat the plugin as a black box; assert on outcomes and output lines.
- One flow/concern per test.
"""
