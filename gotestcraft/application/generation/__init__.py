"""
Generation module - test generation services.

This module contains the services that resolve the context of a Go function,
build prompts, extract generated code and reconcile it with existing tests.
"""
