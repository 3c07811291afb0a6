"""
onedosh_api.providers

Outbound HTTP clients for third-party providers (exchange rates, card issuing, support desk).
"""

# Package marker.
