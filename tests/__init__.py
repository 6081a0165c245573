"""storefront-testkit test suite.

Folder taxonomy
- unit/             : Isolated, fast checks of a single module/class/function.
- integration/      : Real application contexts built from the packaged configuration.
- integration/sitejvm/ : In-process tests using the real site marker (site mode only).
- functional/       : The pytest plugin driven end-to-end in subprocesses.
- fixtures/         : Fake configuration classes, initializers and shared fixtures.

General guidance
- Unit and integration tests claim transformation modes in a private registry;
  only sitejvm/ touches the process-wide one, and only in site mode.
- Admin tests and anything mixing site and admin contexts run through pytester
  subprocesses.
- Property-based tests use hypothesis and live with the module they exercise.
- Default marks (unit, integration, functional) are added by directory.
"""
