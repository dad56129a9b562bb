"""The ``podharness`` command-line interface."""
