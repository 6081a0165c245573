"""Test application contexts.

Builds, caches and applies application contexts for test types:

- `descriptor` / `declarations`: what a test asks for and how it is resolved;
- `environment`, `initializers`, `conditions`: how a context is prepared;
- `application_context`, `scopes`: the context itself (an ``injector.Injector``);
- `loader`, `transformation`, `cache`: assembly and reuse across tests;
- `injection`, `manager`: applying a context to a test instance.

Import rules:
- Configuration classes (`storefront_testkit.configuration`) may import this
  package; this package never imports them.
- No component definitions live here; this is assembly and lifecycle only.
"""
