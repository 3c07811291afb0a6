"""
onedosh_api.api.routers

HTTP routers grouped by domain.
"""

# Package marker; routers are imported directly from submodules.
