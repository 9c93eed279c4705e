"""Build Clash and Clash.Meta configurations from proxy subscriptions and templates."""

__version__ = "0.1.0"