"""Integration tests.

Purpose
- Load the real site and admin contexts: property files, database engine and
  profile conditions together.

Guidelines
- Close every context a test loads, or load it through the `cache` fixture.
- Never bootstrap an admin context in-process outside a private registry.
"""
