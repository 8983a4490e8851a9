"""
Smoke test that every public module imports.
"""

import importlib

import pytest


@pytest.mark.parametrize("module", [
    "ai_usage_dashboard.cli.main",
    "ai_usage_dashboard.client.api",
    "ai_usage_dashboard.config.loader",
    "ai_usage_dashboard.core.aggregator",
    "ai_usage_dashboard.core.currency",
    "ai_usage_dashboard.core.rates",
    "ai_usage_dashboard.core.records",
    "ai_usage_dashboard.core.savings",
    "ai_usage_dashboard.core.series",
    "ai_usage_dashboard.observability.logger",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None
