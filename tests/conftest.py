"""Common test fixtures for the template compiler."""

import pytest

from prompt_dialect_core.prompt_compiler import CompilerService, DialectRegistry


@pytest.fixture
def registry() -> DialectRegistry:
    return DialectRegistry()


@pytest.fixture
def service(registry: DialectRegistry) -> CompilerService:
    """Service with settings-independent behavior (nesting not enforced on compile)."""
    return CompilerService(registry, enforce_nesting_on_compile=False)
