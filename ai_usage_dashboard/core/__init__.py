"""
Core modules for AI Usage Dashboard.

This package contains rate resolution, currency conversion, chart series
construction, plan savings analysis and the dashboard orchestrator.
"""
