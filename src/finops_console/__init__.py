"""
FinOps Console

Terminal console for a cloud cost observability API: dashboard, cost analysis,
resource audits, forecasts, AI insights and report management.
"""

__version__ = "1.0.0"
__author__ = "FinOps Console Team"
